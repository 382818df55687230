"""
HTTP surface for the Catalyst provider chains.

Run with: uvicorn api_service.app:app
"""
