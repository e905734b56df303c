"""
Integration tests for cobalt-aws.

Test components against LocalStack (marked with @pytest.mark.integration):
- S3 helpers (put, list with prefixes, get)
- SQS send + partial batch processing round trip
"""
