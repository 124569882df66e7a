"""PLH Command Center.

Construction project coordination: projects, tasks/RFIs, quotes, vendors and
budgets, with CSV import and executive spreadsheet export.
"""

__version__ = "1.0.0"
