from sales_assistant.handlers.base import Turn, TurnServices
from sales_assistant.handlers.greeting import handle_greeting
from sales_assistant.handlers.recommend import recommend_or_ask

__all__ = ["Turn", "TurnServices", "handle_greeting", "recommend_or_ask"]
