"""Motorworks game package.

Public API:
    from motorworks import CompanySim, TickScheduler, CarDesign, EngineDesign, WorldState
"""
from motorworks.entities import CarDesign, EngineDesign, WorldState
from motorworks.scheduler import TickScheduler
from motorworks.simulation import CompanySim

__all__ = ["CarDesign", "CompanySim", "EngineDesign", "TickScheduler", "WorldState"]
