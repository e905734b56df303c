"""
cobalt-aws: wrappers around AWS Lambda and managed AWS services.

Lets Lambda handlers focus on business logic while the library takes care of:
- Structured logging setup and environment-based configuration
- Retrying remote calls (S3, SQS, Athena) with jittered exponential backoff
- Partial batch failure reporting for SQS-triggered invocations

Architecture: RetryPolicy + RetryExecutor for outbound calls,
BatchFailureCoordinator for inbound batches.
"""

__version__ = "0.13.1"
