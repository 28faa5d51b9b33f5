"""
Prompt templates sent to the web-searching model.

Literal braces in the JSON examples are doubled so ``PromptTemplate`` leaves
them alone; ``{query}``, ``{start}``, ``{end}``, ``{code}`` and ``{name}`` are
the only variables.
"""
from langchain_core.prompts import PromptTemplate


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

_HISTORY_TEMPLATE = """
    You are a financial data expert specializing in China A-Share ETFs.

    User Query: "{query}"

    Task:
    1. SEARCH: Use web search to find the EXACT 6-digit code and official short
       name (证券简称) for the requested ETF.
    2. FETCH DATA: Use web search to find the actual historical daily closing
       prices for this ETF for every trading day from {start} to {end}.
       - Search for terms like: "{query} 历史净值", "{query} historical data",
         "sina finance {query}".
       - The data must be REAL. Do not simulate or invent prices. If you cannot
         find every day, return as many as possible and make sure the dates
         are correct.
    3. FORMAT: Output the data strictly in the following JSON format inside a
       markdown code block.

    ```json
    {{
      "code": "The 6-digit code (e.g., 510300)",
      "name": "The Chinese short name (e.g., 300ETF)",
      "history": [
        {{ "date": "YYYY-MM-DD", "close": 1.234 }}
      ]
    }}
    ```
    Sort "history" by date ascending.
    """

_PROFILE_TEMPLATE = """
    You are a financial data expert specializing in China A-Share ETFs.

    Use web search to find the fund profile of the ETF {name} (code {code}).

    Output strictly the following JSON inside a markdown code block. Use null
    for anything you cannot find.

    ```json
    {{
      "description": "One or two sentences describing the fund's objective",
      "manager": "Fund manager name(s)",
      "fundSize": "Latest reported fund size, with unit (e.g. 1,234.5亿元)",
      "launchDate": "YYYY-MM-DD",
      "company": "Fund management company",
      "trackingIndex": "Name of the index the fund tracks"
    }}
    ```
    """

HISTORY_PROMPT = PromptTemplate.from_template(_HISTORY_TEMPLATE)
PROFILE_PROMPT = PromptTemplate.from_template(_PROFILE_TEMPLATE)


def build_history_prompt(query: str, start: str, end: str) -> str:
    """
    Render the history prompt for ``query`` over ``[start, end]``.

    Args:
        query (str): ETF code or name as typed by the user.
        start (str): First date, YYYY-MM-DD.
        end (str): Last date, YYYY-MM-DD.

    Returns:
        str: The prompt text sent to the model channel.
    """
    return HISTORY_PROMPT.format(query=query, start=start, end=end)


def build_profile_prompt(code: str, name: str) -> str:
    """Render the profile prompt for one ETF."""
    return PROFILE_PROMPT.format(code=code, name=name)
