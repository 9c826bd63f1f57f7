"""TicketSmith - bulk Jira ticket creation from CSV exports."""

__version__ = "0.1.0"
