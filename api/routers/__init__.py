"""
API Routers - endpoint handlers for the lodging API.

- lodging: night editing, saving, reports and selection summaries
"""
