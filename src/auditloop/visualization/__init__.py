"""
Terminal rendering of loop outcomes.
"""

from auditloop.visualization.report import iteration_table, render_outcome

__all__ = ["iteration_table", "render_outcome"]
