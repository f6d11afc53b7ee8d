"""Caption Overlay - glowing caption and watermark burn-in for short videos.

Overlays two timed caption blocks with highlighted words and a channel
watermark onto a video using FFmpeg's drawtext filter, replacing the audio
track in the same pass.
"""

__version__ = "0.1.0"
