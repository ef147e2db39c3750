"""
Streaming pipeline for claude-sdk-python.

- decode: SSE byte stream -> frames
- assemble: frames -> typed events + accumulated message
"""

from claude_sdk.pipeline.assemble import (
    AssemblyState,
    BlockKind,
    BlockState,
    StreamAssembler,
)
from claude_sdk.pipeline.base import Decoder, Pipeline
from claude_sdk.pipeline.decode import Frame, FrameParser, SSEDecoder

__all__ = [
    "AssemblyState",
    "BlockKind",
    "BlockState",
    "Decoder",
    "Frame",
    "FrameParser",
    "Pipeline",
    "SSEDecoder",
    "StreamAssembler",
]
