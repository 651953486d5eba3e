"""System prompt for AI-generated coverage summaries."""

SUMMARY_SYSTEM_PROMPT = """You are an expert QA engineer AI. Given an interactive-element coverage report for a browser test suite, produce a concise, actionable natural-language summary. Focus on:

1. Overall health: coverage percentage and whether the threshold was met
2. Weak spots: element types and pages with the lowest coverage
3. Highest-priority gaps: untested form controls and primary actions
4. Next steps: which tests to write first

Be concise but specific. Reference selectors and page names where relevant. Write 3-6 sentences."""


def build_summary_prompt(coverage_json: str, coverage_summary: str) -> str:
    """Build the user message for the summary AI call."""
    return (
        f"## Coverage Report\n\n```json\n{coverage_json}\n```\n\n"
        f"## Coverage Summary\n\n{coverage_summary}\n\n"
        f"Generate a concise, actionable summary of this coverage report."
    )
