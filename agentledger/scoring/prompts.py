"""
Few-shot prompt for LLM transaction analysis.
"""

from datetime import datetime, timezone

SYSTEM_PROMPT = (
    "You are an expert fraud detection analyst for financial transactions. "
    "Assess each transaction on its specific details and respond with a single "
    "JSON object only, no prose and no markdown."
)

TRAINING_EXAMPLES = [
    {
        "transaction": {
            "amount": 50,
            "description": "Coffee purchase at Starbucks",
            "ip": "192.168.1.100",
            "merchant": "Starbucks",
            "location": "New York, NY",
        },
        "analysis": {
            "riskLevel": "LOW",
            "riskScore": 15,
            "explanation": "Low-risk transaction: Small amount, legitimate merchant, normal business hours",
            "redFlags": [],
            "recommendations": ["Approve transaction", "Monitor for pattern changes"],
        },
    },
    {
        "transaction": {
            "amount": 5000,
            "description": "URGENT: Wire transfer to unknown account - immediate processing required",
            "ip": "45.123.45.67",
            "merchant": "Unknown",
            "location": "International",
        },
        "analysis": {
            "riskLevel": "CRITICAL",
            "riskScore": 95,
            "explanation": "Critical risk: Large amount, urgent language, unknown recipient, international IP",
            "redFlags": ["Urgent language", "Large amount", "Unknown merchant", "International IP"],
            "recommendations": ["Block transaction", "Contact customer", "Flag account for review"],
        },
    },
    {
        "transaction": {
            "amount": 1200,
            "description": "Online purchase - electronics",
            "ip": "192.168.1.100",
            "merchant": "Amazon",
            "location": "New York, NY",
        },
        "analysis": {
            "riskLevel": "MEDIUM",
            "riskScore": 35,
            "explanation": "Medium risk: Moderate amount, legitimate merchant, but higher than usual spending",
            "redFlags": ["Higher than usual amount"],
            "recommendations": ["Verify with customer", "Monitor for additional purchases"],
        },
    },
]

RESPONSE_FORMAT = """{
  "riskLevel": "LOW|MEDIUM|HIGH|CRITICAL",
  "riskScore": number (0-100),
  "explanation": "Detailed explanation of the risk assessment",
  "confidence": number (0-100),
  "redFlags": ["list", "of", "red", "flags"],
  "recommendations": ["list", "of", "recommendations"],
  "similarPatterns": ["patterns", "seen", "before"]
}"""

FACTORS = (
    "Transaction amount (higher amounts = higher risk)",
    "Description keywords (urgent, refund, duplicate, etc.)",
    "IP address location and reputation",
    "Time of day and day of week",
    "Merchant reputation",
    "Geographic location",
    "Device information",
    "Language patterns in description",
)


def _format_example(index: int, example: dict) -> str:
    txn = example["transaction"]
    analysis = example["analysis"]
    return (
        f"Example {index}:\n"
        f"Transaction: ${txn['amount']} - {txn['description']}\n"
        f"IP: {txn['ip']}\n"
        f"Merchant: {txn['merchant']}\n"
        f"Location: {txn['location']}\n"
        f"\n"
        f"Analysis:\n"
        f"- Risk Level: {analysis['riskLevel']}\n"
        f"- Risk Score: {analysis['riskScore']}/100\n"
        f"- Explanation: {analysis['explanation']}\n"
        f"- Red Flags: {', '.join(analysis['redFlags']) or 'None'}\n"
        f"- Recommendations: {', '.join(analysis['recommendations'])}\n"
    )


def build_analysis_prompt(context) -> str:
    """Render the user message for one TransactionContext."""
    timestamp = context.timestamp or datetime.now(timezone.utc)
    examples = "\n".join(
        _format_example(i, ex) for i, ex in enumerate(TRAINING_EXAMPLES, start=1)
    )
    factors = "\n".join(f"{i}. {f}" for i, f in enumerate(FACTORS, start=1))

    return (
        "Analyze the following transaction for fraud risk. "
        "Here are labeled examples of previous analyses:\n\n"
        f"{examples}\n"
        "CURRENT TRANSACTION TO ANALYZE:\n"
        f"- Amount: ${context.amount}\n"
        f"- Description: {context.description}\n"
        f"- IP Address: {context.ip or 'Unknown'}\n"
        f"- User ID: {context.user_id}\n"
        f"- Timestamp: {timestamp.isoformat()}\n"
        f"- Merchant: {context.merchant or 'Unknown'}\n"
        f"- Location: {context.location or 'Unknown'}\n"
        f"- Device: {context.user_agent or 'Unknown'}\n\n"
        f"Respond in the following JSON format:\n{RESPONSE_FORMAT}\n\n"
        f"Consider these factors:\n{factors}\n"
    )
