"""
AgentLedger — Fraud Monitoring Backend.

Architecture:
    agentledger/
    ├── api/             # FastAPI routers (HTTP layer)
    ├── auth/            # JWT session cookie, bcrypt passwords
    ├── db/              # SQLAlchemy models, engine, repositories
    ├── middleware/      # Request context, error handling
    ├── schemas/         # Pydantic request/response models
    ├── scoring/         # Heuristic scorer, AI analyzer, similarity finder
    ├── alerting/        # Delivery providers, dispatcher cascade, test alerts
    └── services/        # Pipeline, analytics, vector search, cache

Data Flow:
    Transaction → AI Analyzer (→ Heuristic fallback) → Similarity Finder
    → Repository (transaction, report) ... Alert Dispatcher on demand

Version: 1.0.0
"""

__version__ = "1.0.0"
