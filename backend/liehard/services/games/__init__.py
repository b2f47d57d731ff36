"""Game domain services: round state machines, scoring and import.

This package contains the domain logic that HTTP routes and socket handlers
call, keeping transport concerns separated from the game rules. Every action
takes the document store as its first argument.
"""
