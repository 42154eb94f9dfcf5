"""
Core business logic modules.

This package contains the core functionality of the Chat Relay:
- AI completion pipeline (client, retry policy, single-flight queue, cache-backed service)
- Shared chat threads and the realtime hub that broadcasts them
- Web page text extraction and text shortening
"""
