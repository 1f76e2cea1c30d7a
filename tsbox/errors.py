from __future__ import annotations
from dataclasses import dataclass

class TSBoxError(ValueError):
	"""Base class of all modelling errors."""

class InvalidParameter(TSBoxError):
	"""Malformed or physically impossible driver input."""

class InfeasibleAlignment(TSBoxError):
	"""The requested alignment cannot be realised by the enclosure family."""

class UnreachableTarget(TSBoxError):
	"""A bounded search ended without meeting its target."""

class DegenerateGeometry(TSBoxError):
	"""Zero, negative or infinite box/port geometry."""

@dataclass(frozen=True)
class Unavailable:
	"""Returned in place of an optional result that cannot be computed."""
	reason: str
