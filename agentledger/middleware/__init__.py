"""AgentLedger middleware stack."""
