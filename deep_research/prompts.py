"""Prompt templates for the research pipeline."""
from __future__ import annotations

from datetime import date


def _today_line() -> str:
    today = date.today()
    return f"Today's date is {today.isoformat()} ({today.year})."


def planner_system_prompt() -> str:
    return (
        "You are an expert research assistant helping the user investigate a topic in depth. "
        f"{_today_line()} Given the user's prompt, produce web search queries that will help "
        "research the topic."
    )


def planner_prompt(topic: str, learnings: list[str], max_queries: int) -> str:
    parts = [
        "Given the following prompt from the user, generate a list of web search queries to "
        f"research the topic. Return at most {max_queries} queries, but feel free to return fewer "
        "if the original prompt is clear. Make sure each query is unique and not similar to "
        "the others.",
        f"User prompt: {topic}",
    ]
    if learnings:
        parts.append(
            "Here are some learnings from previous research, use them to generate more "
            "specific queries:\n" + "\n".join(learnings)
        )
    parts.append(
        "Respond in JSON with the following shape:\n"
        "{\n"
        '  "queries": [\n'
        "    {\n"
        '      "query": "the search engine query",\n'
        '      "researchGoal": "the goal of this query and how to advance the research once results are found"\n'
        "    }\n"
        "  ]\n"
        "}"
    )
    return "\n\n".join(parts)


def learnings_system_prompt() -> str:
    return (
        "You are an expert research assistant who extracts valuable information from search "
        f"results. {_today_line()}"
    )


def learnings_prompt(query: str, contents: list[str], max_learnings: int) -> str:
    return (
        f'Given the following contents from a search for the query "{query}", generate a list '
        f"of learnings. Return at most {max_learnings} learnings, but feel free to return fewer "
        "if the contents are clear. Make sure each learning is unique and not similar to the "
        "others. Learnings should be concise and to the point, as detailed and information dense "
        "as possible. Include any entities like people, places, companies, products, as well as "
        "exact metrics, numbers or dates. The learnings will be used to research the topic further."
        "\n\n"
        + "\n\n".join(contents)
        + "\n\nRespond in JSON with the following shape:\n"
        "{\n"
        '  "learnings": ["learning 1", "learning 2"],\n'
        '  "followUpQuestions": ["follow-up question 1", "follow-up question 2", "follow-up question 3"]\n'
        "}"
    )


def follow_up_topic(research_goal: str, follow_up_questions: list[str]) -> str:
    directions = "".join(f"\n- {question}" for question in follow_up_questions)
    return (
        f"Previous research goal: {research_goal}\n"
        f"Follow-up research directions: {directions}"
    ).strip()


def report_system_prompt() -> str:
    return (
        "You are an expert research analyst who writes detailed research reports from "
        f"collected findings. {_today_line()} Make sure the report is complete and clearly "
        "structured."
    )


def report_prompt(topic: str, learnings: list[str]) -> str:
    numbered = "\n".join(f"{index}. {learning}" for index, learning in enumerate(learnings, 1))
    return (
        "Write a thorough research report based on the user prompt and the research findings "
        "below. Requirements:\n"
        "1. The report should be long, at least 3 pages\n"
        "2. Include all important findings\n"
        "3. Use clear headings and sections\n"
        "4. Support claims with concrete data\n"
        "5. Keep the argument logically coherent\n\n"
        f"User prompt: {topic}\n\n"
        f"Research findings:\n{numbered or '(no findings were collected)'}\n\n"
        "Write the report in Markdown with the following structure:\n"
        "1. Research overview\n"
        "2. Key findings\n"
        "3. Detailed analysis\n"
        "4. Conclusions and recommendations"
    )


SOURCES_HEADING = "## Sources"

CHAT_EMPTY_REPLY = (
    "Sorry, I could not generate a reply. Please try asking again or use a different model."
)
