"""
TrailMap CLI - Command-line interface for region discovery.

Runs discovery and renders overlay masks from coordinate files, and sends
coordinate batches to the discovery service without hand-writing JSON.

Usage:
    trailmap-cli discover memories.json
    trailmap-cli render memories.json --output mask.png
    trailmap-cli send-batch config/commands/batch_u1.yaml
"""

__version__ = "1.0.0"
