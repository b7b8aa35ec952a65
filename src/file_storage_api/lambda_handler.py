"""Lambda handler for the File Storage API using Mangum."""
from mangum import Mangum

from file_storage_api.main import create_app

# Create FastAPI app
app = create_app()

# Wrap with Mangum for API Gateway proxy events
handler = Mangum(app, lifespan="off")

# Export handler for Lambda runtime
lambda_handler = handler
