"""OrgChat backend application."""
