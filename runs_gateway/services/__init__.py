"""External collaborators: run storage, mail transport, reply composition."""
