"""
Restaurant selection engine.

Responsibilities:
- Prune the draw pool by a user's exclusions and recent visits.
- Pick a restaurant uniformly at random from the pruned pool.
- Run single-elimination tournaments driven by human picks.
- Record visits and selections once the caller settles on a winner.
"""
