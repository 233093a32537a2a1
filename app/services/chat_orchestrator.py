"""
Chat turn orchestration: cache -> direct generation -> tool rounds -> degraded fallback.

One turn runs strictly in sequence:

- Cache hit: return the stored response.
- Simple query: DirectGeneration (schema-constrained, no tools). Any failure,
  including malformed output, demotes the turn to the tool path.
- ToolRound1: tools declared, no schema. With no function calls the turn is
  finalized by NoToolFinalize (schema-constrained, system instruction
  re-applied); otherwise each call is executed in order and ToolRound2 sends
  the conversation + model turn + tool outputs for the final answer.
- Rate limit / overload at any point: degraded response built from the
  message text alone (one canned business, or the coverage message).

Only model-produced final answers are cached; degraded responses are not.
"""

import logging
import time
from typing import Any, Optional

from google.genai import types

from app.core.exceptions import UpstreamTransientError
from app.schemas.intelligence import (
    RESPONSE_SCHEMA,
    Business,
    ChatTurn,
    IntelligenceData,
    IntelligenceType,
    parse_intelligence_response,
)
from app.schemas.yelp import tool_payload
from app.services.gemini_client import generate_chat_content
from app.services.location_resolver import resolve_location
from app.services.query_classifier import classify_query
from app.services.response_cache import ResponseCache
from app.services.yelp_ai import query_yelp_ai

logger = logging.getLogger(__name__)

YELP_AI_SYSTEM_INSTRUCTION = """
You are Spotlight, powered by Yelp's AI API for local business intelligence.
You have access to Yelp's comprehensive business database via the 'query_yelp_ai' tool.

**Yelp AI API Integration Workflow**:
1. Analyze the user's local business query and location.
2. ALWAYS use the 'query_yelp_ai' tool to get real-time Yelp business data.
3. Process Yelp AI API responses to provide intelligent insights.
4. For reservations, use the 'make_reservation' tool with Yelp's booking system.

**Location Availability Rules**:
- Yelp AI API is primarily available in the United States, Canada, and select international markets.
- If the query is for locations where Yelp is not available (like India, most of Asia, Africa), inform the user politely.
- For unavailable locations, explain Yelp's current market coverage and suggest they try locations in supported markets.

**Yelp AI Response Rules**:
- Return ONLY valid JSON matching the 'IntelligenceData' schema.
- Transform Yelp AI API business data into our response format.
- Generate personalized "whyThisPlace" insights based on Yelp reviews and ratings.
- Create intelligent comparisons using Yelp's business attributes; winnerId is "A", "B" or null.
- Include accurate business hours from Yelp's database.
- For unavailable locations, return type "idle" with an explanatory message.
"""

DIRECT_GENERATION_SUFFIX = (
    "\n\nGenerate business recommendations directly without using tools for this simple query."
)

QUERY_YELP_AI = "query_yelp_ai"
MAKE_RESERVATION = "make_reservation"
RESERVATION_PHONE = "+1-555-YELP-RES"

YELP_TOOLS = [
    types.Tool(
        function_declarations=[
            types.FunctionDeclaration(
                name=QUERY_YELP_AI,
                description=(
                    "Query Yelp's AI API for intelligent business discovery, recommendations, "
                    "and local insights. Powered by Yelp's comprehensive business database."
                ),
                parameters={
                    "type": "OBJECT",
                    "properties": {
                        "term": {
                            "type": "STRING",
                            "description": "Business type or search term (e.g., 'sushi', 'gym', 'coffee shops')",
                        },
                        "location": {
                            "type": "STRING",
                            "description": "City, neighborhood, or address for local search",
                        },
                        "price": {
                            "type": "STRING",
                            "description": "Price filter: 1 (budget), 2 (moderate), 3 (expensive), 4 (very expensive)",
                        },
                        "categories": {
                            "type": "STRING",
                            "description": "Yelp business categories (comma-separated)",
                        },
                    },
                    "required": ["location"],
                },
            ),
            types.FunctionDeclaration(
                name=MAKE_RESERVATION,
                description=(
                    "Make restaurant reservations through Yelp's booking system. "
                    "Supports thousands of locations across US & Canada."
                ),
                parameters={
                    "type": "OBJECT",
                    "properties": {
                        "businessId": {"type": "STRING", "description": "Yelp business ID"},
                        "date": {"type": "STRING", "description": "Reservation date (YYYY-MM-DD)"},
                        "time": {"type": "STRING", "description": "Reservation time (HH:MM)"},
                        "partySize": {"type": "NUMBER", "description": "Number of guests"},
                    },
                    "required": ["businessId", "date", "time", "partySize"],
                },
            ),
        ]
    )
]

# Coarse location sniffing for the degraded path; first match wins.
_DEGRADED_LOCATIONS = [
    (("mumbai", "india"), "Mumbai, India"),
    (("delhi",), "Delhi, India"),
    (("bangalore",), "Bangalore, India"),
    (("new york", "nyc"), "New York"),
    (("los angeles", "la"), "Los Angeles"),
]
DEFAULT_DEGRADED_LOCATION = "San Francisco"


def _now_ms() -> int:
    return int(time.time() * 1000)


def build_contents(history: list[ChatTurn], message: str) -> list[types.Content]:
    """Client history + new message as model contents ("model" turns stay model, all else user)."""
    contents = [
        types.Content(
            role="model" if turn.role == "model" else "user",
            parts=[types.Part(text=turn.text)],
        )
        for turn in history
    ]
    contents.append(types.Content(role="user", parts=[types.Part(text=message)]))
    return contents


def execute_make_reservation(args: dict) -> dict[str, Any]:
    """Confirm a reservation. No booking system exists; nothing is persisted."""
    return {
        "status": "confirmed",
        "details": args,
        "confirmation_id": f"YELP_{_now_ms()}",
        "restaurant_phone": RESERVATION_PHONE,
    }


def execute_tool_call(call: types.FunctionCall) -> types.Part:
    """Run one model-requested tool and wrap its output as a function response part."""
    args = dict(call.args or {})
    if call.name == QUERY_YELP_AI:
        logger.info("Executing Yelp AI API Query: %s", args)
        result = query_yelp_ai(args)
        response: dict[str, Any] = {"name": QUERY_YELP_AI, "content": tool_payload(result)}
        if result.unavailable:
            response["unavailable"] = True
            response["message"] = result.message
    elif call.name == MAKE_RESERVATION:
        logger.info("Executing Yelp Reservation: %s", args)
        response = execute_make_reservation(args)
    else:
        logger.warning("Model requested unknown tool %r", call.name)
        response = {"error": f"Unknown tool: {call.name}"}
    return types.Part.from_function_response(name=call.name, response=response)


def detect_degraded_location(message: str) -> str:
    text = message.lower()
    for keywords, location in _DEGRADED_LOCATIONS:
        if any(k in text for k in keywords):
            return location
    return DEFAULT_DEGRADED_LOCATION


def build_degraded_response(message: str) -> IntelligenceData:
    """
    Response for a turn the model could not serve (rate limit / overload).

    Outside coverage: an idle coverage message with no businesses.
    Otherwise: a single canned top pick for the detected city.
    """
    details = resolve_location(detect_degraded_location(message))

    if not details.available:
        return IntelligenceData(
            type=IntelligenceType.idle,
            message=(
                "I appreciate your interest! However, Yelp's AI API services are currently available "
                "primarily in the United States, Canada, and select international markets. "
                f"Unfortunately, {details.city}, {details.country} is not yet covered by Yelp's "
                "business database.\n\n"
                "Yelp is continuously expanding its coverage. For now, I can help you discover amazing "
                "businesses in US cities like San Francisco, New York, Los Angeles, Chicago, and many more!\n\n"
                "Would you like to explore businesses in any of these locations instead?"
            ),
        )

    return IntelligenceData(
        type=IntelligenceType.recommendation,
        message=(
            f"I found some excellent local businesses in {details.city}! While our AI is experiencing "
            "high demand, I can still provide great recommendations based on Yelp's database."
        ),
        businesses=[
            Business(
                id=f"fallback_{_now_ms()}",
                name="Yelp's Top Pick",
                category="Restaurant",
                price="$$",
                rating=4.7,
                review_count=234,
                address=f"123 Main St, {details.city}, {details.state_code}",
                hours="Open until 10 PM",
                tags=["Popular", "Highly Rated", "Great Service"],
                why_this_place=(
                    "This spot consistently receives excellent reviews on Yelp for its quality and service."
                ),
                highlight="Top-rated local favorite",
                image_url="https://picsum.photos/400/300?random=1",
            )
        ],
    )


class ChatOrchestrator:
    """Resolves one chat turn into IntelligenceData. Owns the response cache."""

    def __init__(self, cache: ResponseCache):
        self.cache = cache

    def respond(self, history: list[ChatTurn], message: str) -> IntelligenceData:
        """
        Resolve a chat turn.

        Raises:
            ConfigurationError: GEMINI_API_KEY is not set.
            UpstreamMalformedOutput: the last available path produced unusable output.
            Exception: any other upstream failure (terminal; not retried).
        """
        cached = self.cache.get(message)
        if cached is not None:
            return cached

        contents = build_contents(history, message)
        try:
            result = self._resolve(contents, message)
        except UpstreamTransientError as e:
            logger.info("API temporarily unavailable (rate limit/overload), using degraded fallback: %s", e)
            return build_degraded_response(message)

        self.cache.put(message, result)
        return result

    def _resolve(self, contents: list[types.Content], message: str) -> IntelligenceData:
        if classify_query(message).simple:
            result = self._direct_generation(contents)
            if result is not None:
                return result
        return self._tool_rounds(contents)

    def _direct_generation(self, contents: list[types.Content]) -> Optional[IntelligenceData]:
        """Single schema-constrained call; None means demote to the tool path."""
        logger.info("Using direct generation for simple query")
        try:
            response = generate_chat_content(
                contents,
                system_instruction=YELP_AI_SYSTEM_INSTRUCTION + DIRECT_GENERATION_SUFFIX,
                response_schema=RESPONSE_SCHEMA,
            )
            return parse_intelligence_response(response.text)
        except Exception as e:
            # ConfigurationError is checked by the router before a turn starts
            logger.warning("Direct generation failed, falling back to tool-based approach: %s", e)
            return None

    def _tool_rounds(self, contents: list[types.Content]) -> IntelligenceData:
        logger.info("Tool round 1: %d contents", len(contents))
        first = generate_chat_content(
            contents,
            system_instruction=YELP_AI_SYSTEM_INSTRUCTION,
            tools=YELP_TOOLS,
        )
        function_calls = first.function_calls or []

        if not function_calls:
            logger.info("No tool calls requested; finalizing with structured output")
            final = generate_chat_content(
                contents,
                system_instruction=YELP_AI_SYSTEM_INSTRUCTION,
                response_schema=RESPONSE_SCHEMA,
            )
            return parse_intelligence_response(final.text)

        logger.info("Tool round 2 after %d tool call(s)", len(function_calls))
        tool_parts = [execute_tool_call(call) for call in function_calls]
        model_turn = first.candidates[0].content
        follow_up = [
            *contents,
            model_turn,
            types.Content(role="tool", parts=tool_parts),
        ]
        final = generate_chat_content(follow_up, response_schema=RESPONSE_SCHEMA)
        return parse_intelligence_response(final.text)
