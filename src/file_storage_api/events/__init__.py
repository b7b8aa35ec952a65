"""
S3 event handlers.

Both handlers run as their own Lambda functions, triggered by the same
object-created notifications. Neither one ever raises to the Lambda runtime:
per-object failures are logged and reported in the returned summary, because a
raised error would make S3/EventBridge redeliver the whole batch.
"""
