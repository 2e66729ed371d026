"""Built-in node kinds.

Connection rules:
- audio output can only be transcribed, so an audio node feeds transcribe only
- file nodes hold uploaded content and accept no input
- the drop placeholder is not a real node yet: it neither feeds nor accepts
"""

from __future__ import annotations

from ..engine.models import PLACEHOLDER_KIND
from .registry import NodeKindRegistry


def _never(kind: str) -> bool:
    return False


def _audio_feeds(target_kind: str) -> bool:
    return target_kind == "transcribe"


def register_builtin_kinds(registry: NodeKindRegistry) -> NodeKindRegistry:
    registry.register_kind(
        kind="text",
        display_name="Text",
        description="Free text or generated text",
        category="media",
        default_data={"text": "", "instructions": ""},
        renderer="text-node",
        icon="type",
        color="#64748B",
    )
    registry.register_kind(
        kind="image",
        display_name="Image",
        description="Uploaded or generated image",
        category="media",
        default_data={"instructions": ""},
        renderer="image-node",
        icon="image",
        color="#0EA5E9",
    )
    registry.register_kind(
        kind="video",
        display_name="Video",
        description="Uploaded or generated video",
        category="media",
        default_data={"instructions": ""},
        renderer="video-node",
        icon="video",
        color="#8B5CF6",
    )
    registry.register_kind(
        kind="audio",
        display_name="Audio",
        description="Uploaded audio or generated speech",
        category="media",
        default_data={"instructions": ""},
        can_feed=_audio_feeds,
        renderer="audio-node",
        icon="audio-lines",
        color="#F59E0B",
    )
    registry.register_kind(
        kind="transcribe",
        display_name="Transcribe",
        description="Turns upstream media into text",
        category="transform",
        renderer="transcribe-node",
        icon="captions",
        color="#10B981",
    )
    registry.register_kind(
        kind="code",
        display_name="Code",
        description="Generated or hand-written code",
        category="transform",
        default_data={"language": "javascript", "code": ""},
        renderer="code-node",
        icon="code",
        color="#EF4444",
    )
    registry.register_kind(
        kind="file",
        display_name="File",
        description="Uploaded file of any type",
        category="media",
        accepts=_never,
        renderer="file-node",
        icon="file",
        color="#78716C",
    )
    registry.register_kind(
        kind=PLACEHOLDER_KIND,
        display_name="New node",
        description="Placeholder waiting for the user to pick a kind",
        category="placeholder",
        default_data={"isSource": False},
        can_feed=_never,
        accepts=_never,
        renderer="drop-node",
        icon="plus",
    )
    return registry
