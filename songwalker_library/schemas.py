"""SongWalker Library - Pydantic models for preset and index documents.

Models correspond to the JSON schemas in /specs. Python attributes are
snake_case; the wire format is camelCase (aliases generated automatically).

Reading is lenient (unknown keys ignored, most zone fields optional) so the
indexer can summarize hand-authored presets. Documents produced by the tools
are additionally checked against the strict JSON Schema contracts before
they are published (see songwalker_library.contracts).
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel

from songwalker_library.config import FORMAT_VERSION, INDEX_FORMAT, PRESET_FORMAT


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Wire representation: camelCase keys, absent optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Zones ---


class KeyRange(_Model):
    """Inclusive MIDI key range."""

    low: int
    high: int


class ZonePitch(_Model):
    root_note: int
    fine_tune_cents: int | float = 0


class AudioRef(_Model):
    """Reference to an audio blob stored next to (or near) the preset."""

    type: Literal["external"] = "external"
    url: str
    codec: str
    sha256: str


class LoopRegion(_Model):
    start: int
    end: int


class Zone(_Model):
    """One keyed, pitched sample region."""

    key_range: KeyRange | None = None
    pitch: ZonePitch | None = None
    sample_rate: int | float | None = None
    audio: AudioRef | None = None
    loop: LoopRegion | None = None


# --- Playback graph nodes ---


class SamplerConfig(_Model):
    one_shot: bool = False
    zones: list[Zone] = Field(default_factory=list)


class SamplerNode(_Model):
    type: Literal["sampler"] = "sampler"
    config: SamplerConfig = Field(default_factory=SamplerConfig)


class CompositeNode(_Model):
    type: Literal["composite"] = "composite"
    children: list[PresetNode] = Field(default_factory=list)


class OpaqueNode(_Model):
    """Any node kind that carries no sample zones (oscillators, effects)."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None


def _node_kind(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    if kind in ("sampler", "composite"):
        return kind
    return "opaque"


PresetNode = Annotated[
    Union[
        Annotated[SamplerNode, Tag("sampler")],
        Annotated[CompositeNode, Tag("composite")],
        Annotated[OpaqueNode, Tag("opaque")],
    ],
    Discriminator(_node_kind),
]

CompositeNode.model_rebuild()


def iter_zones(node: SamplerNode | CompositeNode | OpaqueNode | None) -> Iterator[Zone]:
    """Yield every zone reachable from a node, depth first."""
    if isinstance(node, SamplerNode):
        yield from node.config.zones
    elif isinstance(node, CompositeNode):
        for child in node.children:
            yield from iter_zones(child)


# --- Preset document ---


class PresetMetadata(_Model):
    model_config = ConfigDict(extra="allow")

    gm_program: int | None = None
    gm_category: str | None = None
    source: str | None = None
    variant: int | None = None
    license: str | None = None


class PresetDocument(_Model):
    """A single instrument preset (preset.json)."""

    format: str = PRESET_FORMAT
    version: int = FORMAT_VERSION
    name: str
    category: str | None = None
    tags: list[str] | None = None
    metadata: PresetMetadata | None = None
    node: PresetNode | None = None
    # Legacy name of the root node field
    graph: PresetNode | None = None

    @property
    def root_node(self) -> SamplerNode | CompositeNode | OpaqueNode | None:
        return self.node if self.node is not None else self.graph


# --- Index document ---


class PresetEntry(_Model):
    """Summary of one preset inside a library index."""

    type: Literal["preset"] = "preset"
    name: str
    path: str
    category: str
    tags: list[str] = Field(default_factory=list)
    gm_program: int | None = None
    zone_count: int | None = None
    key_range: KeyRange | None = None


class LibraryEntry(_Model):
    """Reference from the root index to a library index."""

    type: Literal["index"] = "index"
    name: str
    path: str
    description: str
    preset_count: int


class IndexDocument(_Model):
    """A library index or the root index (index.json)."""

    format: str = INDEX_FORMAT
    version: int = FORMAT_VERSION
    name: str
    description: str
    entries: list[Annotated[PresetEntry | LibraryEntry, Field(discriminator="type")]] = Field(
        default_factory=list
    )


__all__ = [
    "AudioRef",
    "CompositeNode",
    "IndexDocument",
    "KeyRange",
    "LibraryEntry",
    "LoopRegion",
    "OpaqueNode",
    "PresetDocument",
    "PresetEntry",
    "PresetMetadata",
    "PresetNode",
    "SamplerConfig",
    "SamplerNode",
    "Zone",
    "ZonePitch",
    "iter_zones",
]
