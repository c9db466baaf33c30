"""
mediaprobe — reachability and decodability probe for a media directory service.

Queries the directory catalog, samples one entry at random, resolves and
classifies it, then proves the entry decodes (images) or opens for playback
(videos).
"""

__version__ = "0.1.0"
