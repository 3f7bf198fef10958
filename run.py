#!/usr/bin/env python3
"""Main entry point for the Listing Kit service."""

import sys
import os

# Add project root to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__)))

from src.api.server import run_server

if __name__ == '__main__':
    print("=" * 60)
    print("Listing Kit Service - Starting Server")
    print("=" * 60)
    print("\nEndpoints:")
    print("  POST /api/generate                 - Build a marketing kit")
    print("  POST /api/create-checkout-session  - Start a Stripe checkout")
    print("  POST /api/stripe-webhook           - Stripe event intake")
    print("  GET  /download/s3/<key>            - Redirect to a kit download")
    print("  GET  /api/admin/jobs               - Recent jobs (basic auth)")
    print("  GET  /api/health                   - Health check")
    print("\n" + "=" * 60)

    run_server()
