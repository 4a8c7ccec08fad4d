"""Core Application Layer: the intercepted client and the instances that own it.

Connects the domain layer with the infrastructure layer (cache, stats,
series routing) and exposes Database and DatabaseManager.
"""
