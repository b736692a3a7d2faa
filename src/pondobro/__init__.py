"""PondoBro: personal finance tracking backend.

Accounts, cookie-held refresh sessions with short-lived bearer tokens,
and a per-user transaction ledger with a dashboard summary. Serves the
single-page PondoBro frontend over HTTP.
"""

__version__ = "0.1.0"
