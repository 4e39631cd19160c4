"""Browser automation modules (Playwright).

``waits`` holds the mutation-driven wait primitive, ``dom`` the
Playwright-backed element lookup and interaction, ``navigation`` the
staged page loading and ``session`` the browser lifecycle.
"""
