"""
Pytest configuration and shared fixtures for all tests.

This file is automatically loaded by pytest and makes fixtures
available to all test files.
"""

import sys
import os

# Set AWS region for tests (required by boto3 clients even with moto mocking)
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')
os.environ.setdefault('AWS_REGION', 'us-west-2')
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')

# Upstream settings read by the chat Lambdas at import time
os.environ.setdefault('UPSTREAM_API_KEY', 'test-upstream-key')
os.environ.setdefault('UPSTREAM_ENDPOINT', 'https://upstream.example.com/prod/chat')

# Add lambda directory to path so tests can import chat_assist without installing it
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Shared fixtures
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))
from fixtures.sample_data import *  # noqa: E402,F401,F403
