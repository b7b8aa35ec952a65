"""File Storage API: presigned uploads, DynamoDB metadata and thumbnail generation."""
