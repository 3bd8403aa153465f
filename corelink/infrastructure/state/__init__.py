"""Persistent State Implementations.

Provides the disk-backed KeyValueStore and the accessor for the currently
selected Core host built on top of it.
Bounded Context: Endpoint State
"""
