"""
Review-driven recommendations.

Responsibilities:
- Rank active restaurants by rating, likes or review count.
- Summarise ratings per category and overall.
- Surface the most-liked reviews alongside the ranking.
"""
