"""HTTP-facing pieces: Set-Cookie records and header sinks."""
