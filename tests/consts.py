TEST_BUCKET_NAME = "test-file-storage-bucket"
TEST_TABLE_NAME = "test-file-metadata"
TEST_REGION = "us-east-1"
