"""Gymnasium environments for Blockfall."""

from __future__ import annotations

from gymnasium.envs.registration import register

ENV_ID = "Blockfall-10x20-v0"

# Register the canonical 10x20 board
register(
    id=ENV_ID,
    entry_point="blockfall.env.blockfall_env:BlockfallEnv",
)

__all__ = ["ENV_ID"]
