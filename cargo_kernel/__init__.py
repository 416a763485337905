"""
Cargo Kernel - stowage and lifecycle tracking for a constrained cargo hold

An append-only, audit-logged inventory system with:
- Upsert import of items and containers
- Greedy priority/zone placement under a volume budget
- Item lifecycle transitions (stored, retrieved, waste_planned)
- Waste identification and weight-bounded return planning
- Day-by-day usage simulation
"""

__version__ = "0.1.0"
