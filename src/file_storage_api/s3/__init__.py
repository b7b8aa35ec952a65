"""Object store helpers: thin, single-purpose wrappers around the S3 client."""
