"""Live program state built from a ``Dump Program`` response."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ProgramState:
    """Active preset, signal chains, slot bindings and parameter values."""

    active_preset: str = ""
    chains: dict[str, list[str]] = field(default_factory=dict)
    slots: dict[str, str] = field(default_factory=dict)
    params: dict[str, dict[str, str]] = field(default_factory=dict)

    def set_param(self, plugin: str, param: str, value: str) -> None:
        self.params.setdefault(plugin, {})[param] = value

    def to_dict(self) -> dict:
        return {
            "active_preset": self.active_preset,
            "chains": {k: list(v) for k, v in self.chains.items()},
            "slots": dict(self.slots),
            "params": {k: dict(v) for k, v in self.params.items()},
        }

    def __repr__(self) -> str:
        return (
            f"ProgramState(active_preset={self.active_preset!r}, "
            f"chains={len(self.chains)}, slots={len(self.slots)})"
        )
