"""Room domain services: durable room state and the question bank.

The multiplayer coordinator talks to these through small interfaces so
that socket handling stays separate from persistence.
"""
