"""Simulated participants for Saboteur Night."""

from bots.simulator import BotSimulator

__all__ = ["BotSimulator"]
