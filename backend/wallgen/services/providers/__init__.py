"""Upstream provider implementations.

Each provider implements the MediaTransport seam used by the job runners:
  generate image → submit video → poll operation → download asset
"""
