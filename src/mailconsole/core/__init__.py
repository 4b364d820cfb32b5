"""Mail transport, mailbox reader and sent-mail ledger."""
