"""ReviewDesk: access control and document delivery for document review.

Authenticates reviewers, gates actions by role and registration state,
and brokers access to the PDF documents kept in an object store.
"""

__version__ = "0.1.0"
