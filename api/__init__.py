"""
MerkleDrop HTTP API

- GET/PUT /commitment - Active allow-list root
- GET /proof/{recipient} - Membership proof lookup
- POST /claim - Claim against an allocation
- GET/PUT /claimed/{recipient} - Cumulative claims and override
- GET /claims - Claim receipts
- GET /health - Health check

Usage:
    uvicorn --factory api.app:create_app
"""

__version__ = "0.1.0"
