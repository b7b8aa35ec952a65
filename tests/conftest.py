pytest_plugins = [
    "tests.fixtures.mocked_aws",
    "tests.fixtures.media_fixtures",
]
