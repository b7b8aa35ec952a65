import json


def api_gateway_event(method: str, path: str, query: dict = None) -> dict:
    return {
        "resource": "/{proxy+}",
        "path": path,
        "httpMethod": method,
        "headers": {"Host": "example.execute-api.us-east-1.amazonaws.com"},
        "multiValueHeaders": {"Host": ["example.execute-api.us-east-1.amazonaws.com"]},
        "queryStringParameters": query,
        "multiValueQueryStringParameters": {k: [v] for k, v in query.items()} if query else None,
        "pathParameters": {"proxy": path.lstrip("/")},
        "stageVariables": None,
        "requestContext": {
            "resourcePath": "/{proxy+}",
            "httpMethod": method,
            "path": f"/prod{path}",
            "stage": "prod",
            "requestId": "test-request",
            "identity": {"sourceIp": "127.0.0.1"},
        },
        "body": None,
        "isBase64Encoded": False,
    }


def test__api_gateway_list_files(mocked_aws):
    from file_storage_api.lambda_handler import handler

    response = handler(api_gateway_event("GET", "/files"), context={})

    assert response["statusCode"] == 200
    assert json.loads(response["body"]) == {"items": []}
    assert response["headers"]["access-control-allow-origin"] == "*"


def test__api_gateway_missing_params(mocked_aws):
    from file_storage_api.lambda_handler import handler

    response = handler(api_gateway_event("GET", "/upload-url", {"fileName": "a.txt"}), context={})

    assert response["statusCode"] == 400
    assert json.loads(response["body"]) == {"error": "fileName and contentType are required"}
