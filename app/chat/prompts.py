from __future__ import annotations

PAYMENT_SYSTEM_PROMPT = (
    "You are an expert Base blockchain payment assistant. You help users send payments, "
    "check balances and manage their crypto transactions on the Base network. "
    "Rules: never invent payment data, balances or transaction hashes; if an operation failed, "
    "repeat the error instead of making data up; always confirm payment details before a "
    "transaction is executed and warn that blockchain transactions cannot be reversed. "
    "Capabilities: send ETH, send USDC, batch payments, balance checks, transaction status, "
    "gasless payments when the sponsor is available, paying ENS names such as alex.eth. "
    "Supported tokens: ETH and USDC. Network: Base Sepolia testnet unless told otherwise. "
    "Answer in plain text, no markdown, in at most a few short paragraphs."
)

ENS_SYSTEM_PROMPT = (
    "You are an expert Ethereum Name Service (ENS) assistant. "
    "Rules: never generate fake ENS data; only report data that came from the ENS contracts; "
    "if a lookup failed, say so. "
    "Capabilities: register .eth names (two-step commit/reveal with a 60 second wait), "
    "check availability, calculate prices, resolve names to addresses and addresses to names, "
    "read and set text and address records, renew names, transfer ownership. "
    "Network: Sepolia testnet. Supported TLDs: .eth and .test. Minimum registration: 28 days. "
    "Warn about irreversible operations such as transfers. "
    "Answer in plain text only, no markdown formatting."
)

PAYMENT_HELP_MESSAGE = """Welcome to the Base Payment Assistant! I can help you with:

Payment Operations
- Send ETH payments to any address or ENS name
- Send USDC stablecoin payments
- Send batch payments to several recipients
- Check your token balances

ENS Domain Services
- Register .eth domain names
- Check domain availability
- Resolve domain information

Account Management
- View your ETH and USDC balances
- Check transaction status

Security Features
- Address validation
- Amount confirmation before anything is sent

Just tell me what you'd like to do! For example:
- "Send 0.1 ETH to alex.eth"
- "What's my balance?"
- "Register myname.eth"
- "Is alice.eth available?"
- "Who is vitalik.eth?\""""

ENS_HELP_MESSAGE = """I can help you with ENS operations including:

- Register .eth domain names
- Check if names are available
- Calculate registration prices
- Resolve names to addresses (and addresses to names)
- Set text and address records
- Renew existing names
- Transfer name ownership

Registration takes two steps: I submit a commitment first, then after about a minute you say "complete registration" and the name is registered.

Just ask me what you'd like to do!"""

PAYMENT_SUGGESTED_PROMPTS = [
    "What's my balance?",
    "Send 0.1 ETH to alex.eth",
    "Send 10 USDC to blockdevrel.eth",
    "Register myname.eth",
    "Is alice.eth available?",
    "Who is vitalik.eth?",
    "Send 0.5 ETH to 0x742d35Cc6634C0532925a3b8D5C0B4F3e8dCdD98",
    "How do I send a payment?",
    "What tokens can I send?",
    "What are the fees on Base?",
]

ENS_SUGGESTIONS = [
    "Is vitalik.eth available?",
    "Register myname.eth for 1 year",
    "What's the address for vitalik.eth?",
    "Set my twitter for myname.eth to @myhandle",
    "Renew myname.eth for 2 years",
    "How much does myname.eth cost?",
    "Transfer myname.eth to 0x...",
]

PAYMENT_CAPABILITIES = [
    "send_eth",
    "send_usdc",
    "batch_payments",
    "balance_check",
    "transaction_status",
    "gasless_payments",
    "ens_recipients",
]

ENS_CAPABILITIES = [
    "availability",
    "price",
    "register",
    "renew",
    "set_record",
    "set_resolver",
    "transfer",
    "resolve",
    "reverse_resolve",
]


def name_suggestions(name: str, *, available: bool) -> list[str]:
    if available:
        return [
            f"Register {name}",
            f"Check registration cost for {name}",
            f"Get more information about {name}",
        ]
    return [
        f"Get information about {name}",
        f"Renew {name}",
        f"Set records for {name}",
        f"Transfer {name}",
        f"Check expiration date for {name}",
    ]


def build_user_message(message: str, user_address: str | None) -> str:
    text = f'User message: "{message}"\n\n'
    if user_address:
        text += f"User address: {user_address}\n"
    return text


def payment_fallback(message: str) -> str:
    lower = message.lower()
    if "hello" in lower or "hi" in lower.split() or "hey" in lower:
        return (
            "Hello! I'm your Base payment assistant. I can help you send ETH and USDC payments, "
            "check balances, and manage transactions on Base network. What would you like to do?"
        )
    if "help" in lower:
        return (
            "I can help you with:\n\n"
            "- Send ETH payments\n"
            "- Send USDC payments\n"
            "- Send batch payments to multiple recipients\n"
            "- Check your token balances\n"
            "- Check transaction status\n"
            "- Use gasless transactions on Base\n\n"
            "Just tell me what you'd like to do!"
        )
    if "send" in lower or "pay" in lower:
        return (
            "I can help you send payments on Base network! Please provide details like: "
            '"Send 0.1 ETH to 0x742d35Cc6634C0532925a3b8D5C0B4F3e8dCdD98"'
        )
    if "balance" in lower:
        return (
            "I can check your ETH and USDC balances on Base network. "
            "Just ask \"What's my balance?\" or connect your wallet for me to check."
        )
    return (
        "I'm here to help with Base network payments! You can send ETH or USDC, "
        "check balances, or get transaction status. What would you like to do?"
    )


def ens_fallback(message: str) -> str:
    lower = message.lower()
    if "hello" in lower or "hi" in lower.split() or "hey" in lower:
        return (
            "Hello! I'm your ENS assistant. I can help you with Ethereum Name Service operations "
            "like registering domains, setting records, and resolving names. What would you like to do?"
        )
    if "help" in lower or "what can you do" in lower:
        return ENS_HELP_MESSAGE
    if "register" in lower or "buy" in lower:
        return (
            "I can help you register an ENS name! Please tell me which name you'd like to register "
            '(e.g., "myname.eth") and I\'ll guide you through the process.'
        )
    if "available" in lower or "check" in lower:
        return (
            "I can help you check if ENS names are available for registration. Please provide the "
            '.eth name you\'d like to check (e.g., "is myname.eth available").'
        )
    if "resolve" in lower or "address" in lower:
        return (
            "I can help you resolve ENS names to addresses or vice versa. "
            "Please provide the name or address you'd like me to look up."
        )
    if "set" in lower or "update" in lower or "record" in lower:
        return (
            "I can help you set or update ENS records. Please tell me which name and what type of "
            'record you\'d like to set (e.g., "Set email for myname.eth to user@example.com").'
        )
    return (
        "I'm here to help with ENS operations! You can ask me to register names, check availability, "
        "resolve addresses, set records, or get information about ENS. What would you like to do?"
    )
