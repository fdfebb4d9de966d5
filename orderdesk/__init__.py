"""Order desk: marketplace order ingestion, reconciliation and board sync."""
