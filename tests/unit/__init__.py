"""
Unit tests for cobalt-aws.

Test individual components in isolation:
- Retry policy (classification, backoff, give-up conditions)
- Retry executor (attempt loop, metadata, RetryExhausted)
- Error classifiers (botocore errors -> transient/permanent)
- Batch coordinator (isolation, deadline, duplicates)
- SQS event parsing and the Lambda handler wrapper
- Service helpers with mocked boto3 clients
"""
