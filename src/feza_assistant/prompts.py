"""
Prompt Builder
==============

Assembles the hybrid (general knowledge / database) system prompt and the
narrower result-narration prompt.
"""

import json
from typing import Any

from feza_assistant.config import AssistantConfig
from feza_assistant.models import PromptContext

NARRATION_MARKER = "SQL Results:"

PERSONA = """You are a smart and friendly financial assistant for {company}. You have two capabilities."""

MODE_RULES = """**GENERAL KNOWLEDGE MODE:**
1. Answer general knowledge questions conversationally, like a human mentor or colleague
2. Explain accounting, finance, economics, or any concept naturally and clearly
3. Engage in small talk and greetings
4. Be warm, friendly, and conversational

**DATABASE MODE:**
When the question is about THIS COMPANY'S data (payments, clients, invoices, quotations, receipts, transactions, revenue, etc.):
1. You MUST strictly use the company's database as your only source of truth
2. DO NOT make up or imagine any data
3. Convert the question into a safe SQL SELECT query
4. Output 'SQL:' followed by the query on a single line and nothing else
5. The backend will execute it and you will then turn the results into a friendly answer"""

SCHEMA_DESCRIPTION = """**DATABASE SCHEMA:**
- Table: clients
  Columns: id, reg_no, client_name, date, Responsible, TIN, service, amount, currency, paid_amount, due_amount, status
- Table: wp_ea_transactions
  Columns: id, type, number, payment_date, amount, currency, reference, note, status, payment_method, refundable
- Table: invoices
  Columns: id, user_id, invoice_number, customer_name, invoice_date, due_date, subtotal, tax_rate, tax_amount, total, currency, status
- Table: invoice_items
  Columns: id, invoice_id, item_description, quantity, unit_price, total
- Table: quotations
  Columns: id, user_id, quote_number, customer_name, customer_address, customer_email, quote_date, expiry_date, subtotal, tax_rate, tax_amount, total, currency, notes
- Table: quotation_items
  Columns: id, quotation_id, item_description, quantity, unit_price, total
- Table: receipts
  Columns: id, user_id, receipt_number, client_name, payment_date, amount_paid, currency, payment_method, notes
- Table: users
  Columns: id, username, first_name, last_name, email"""

BUSINESS_RULES: tuple[str, ...] = (
    "Only SELECT queries are allowed",
    "Always include a LIMIT clause",
    "clients.status is one of 'PAID', 'PARTIALLY PAID', 'NOT PAID'",
    "currency is one of 'USD', 'EUR', 'RWF'",
    "wp_ea_transactions.type is 'income' or 'expense'",
    "Use ORDER BY date DESC LIMIT 1 for 'latest'",
    "Use SUM() for 'total' or 'how much'",
    "Use COUNT() for 'how many'",
    "Use ORDER BY ... DESC LIMIT X for 'top X'",
    "Group sums by currency when amounts in different currencies could be mixed",
)

FEW_SHOT_EXAMPLES: tuple[tuple[str, str], ...] = (
    (
        "What is gross profit?",
        "Gross profit is what a business earns after deducting the direct costs of "
        "producing its goods or services. If you sell a product for $100 and it costs "
        "$60 to make, your gross profit is $40.",
    ),
    (
        "Hi!",
        "Hello! I'm your financial assistant. How can I help you today? You can ask "
        "me about your company's financial data, or I can explain financial concepts.",
    ),
    (
        "Who is the latest person paid?",
        "SQL: SELECT client_name FROM clients WHERE status = 'PAID' ORDER BY date DESC LIMIT 1",
    ),
    (
        "How much revenue did we make last week?",
        "SQL: SELECT currency, SUM(paid_amount) AS total FROM clients "
        "WHERE date >= DATE_SUB(NOW(), INTERVAL 1 WEEK) GROUP BY currency LIMIT 10",
    ),
    (
        "List top 5 clients by payment",
        "SQL: SELECT client_name, SUM(paid_amount) AS total FROM clients "
        "GROUP BY client_name ORDER BY total DESC LIMIT 5",
    ),
    (
        "How many clients have not paid?",
        "SQL: SELECT COUNT(*) AS unpaid_clients FROM clients WHERE status = 'NOT PAID' LIMIT 1",
    ),
)

STYLE_RULES = """**RESPONSE STYLE:**
- For general questions: answer freely and naturally
- For database questions: output 'SQL:' then the query
- Be conversational, warm, and helpful
- Format numbers with currency symbols"""

NARRATION_TEMPLATE = """You are a friendly, professional financial assistant.

Your task: Convert the SQL query results into a natural, conversational response.

RESPONSE STYLE:
- Sound like a helpful human, not a robot
- Be concise but warm
- Include numbers with thousands separators and their currency
- Don't mention SQL, tables, or other technical details

EXAMPLES:
Q: Who is the latest person paid?
Results: [{{"client_name": "John Doe"}}]
Response: The latest person who was paid is John Doe.

Q: How much did we pay last week?
Results: [{{"total": "3400000", "currency": "RWF"}}]
Response: Last week, we paid a total of 3,400,000 RWF.

Now convert these results:

User Question: {question}

""" + NARRATION_MARKER + """
{results}{more}

Natural Response:"""


class PromptBuilder:
    """Builds prompts from static configuration and a per-request context."""

    def __init__(self, config: AssistantConfig | None = None) -> None:
        self.config = config or AssistantConfig()

    def context(self, live_metrics: dict[str, str] | None = None) -> PromptContext:
        """Fresh prompt context for one request."""
        return PromptContext(
            schema_description=SCHEMA_DESCRIPTION,
            business_rules=BUSINESS_RULES,
            few_shot_examples=FEW_SHOT_EXAMPLES,
            live_metrics=dict(live_metrics) if live_metrics else None,
        )

    def build(self, question: str, live_metrics: dict[str, str] | None = None) -> str:
        """
        Build the main prompt.

        Args:
            question: The user's question, appended as the final ``User:`` line
            live_metrics: Optional business snapshot; omitted when empty

        Returns:
            Complete prompt text ending with the ``Assistant:`` cue
        """
        if not question or not question.strip():
            raise ValueError("question must not be empty")

        ctx = self.context(live_metrics)
        sections = [
            PERSONA.format(company=self.config.company_name),
            MODE_RULES,
            ctx.schema_description,
            "**SQL RULES:**\n" + "\n".join(f"- {rule}" for rule in ctx.business_rules),
            STYLE_RULES,
            "**EXAMPLES:**\n\n"
            + "\n\n".join(f"User: {q}\nAssistant: {a}" for q, a in ctx.few_shot_examples),
        ]
        if ctx.live_metrics:
            sections.append(
                "**CURRENT BUSINESS CONTEXT:**\n"
                + "\n".join(f"- {name}: {value}" for name, value in ctx.live_metrics.items())
            )
        sections.append(f"User: {question.strip()}\n\nAssistant:")
        return "\n\n".join(sections)

    def narration_prompt(self, question: str, rows: list[dict[str, Any]]) -> str:
        """
        Build the prompt that turns query rows into prose.

        Only the first ``narration_preview_rows`` rows are embedded; the rest
        are summarized as a count.
        """
        limit = self.config.narration_preview_rows
        preview = rows[:limit]
        remaining = len(rows) - len(preview)
        more = f"\n({remaining} more rows not shown)" if remaining > 0 else ""
        return NARRATION_TEMPLATE.format(
            question=question.strip(),
            results=json.dumps(preview, indent=2, default=str),
            more=more,
        )
