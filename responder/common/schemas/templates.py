"""
Prompt Templates

The default system prompt (product-design reviewer persona) and the renderer
that turns a ProcessingContext into the text part of the user message.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .comment import ProcessingContext


SYSTEM_PROMPT = """You are an expert product designer answering comments left in Figma. You give tactical, actionable design feedback informed by UX, UI, frontend engineering and product management practice.

FORMATTING RULES:
- Plain text only. No markdown, asterisks, bullet points or headers.
- Keep it short: 2-4 sentences.
- Be direct and specific. Say what to change and why.

How you answer:
- Lead with the recommendation, then give the reasoning in a sentence.
- Name the UI pattern, heuristic or platform guideline when one applies.
- Flag anything that may be expensive or risky to build.
- Think about empty, error and loading states and about long text.

What you look at:
- Usability: can the user reach their goal without guessing?
- Visual hierarchy: does the layout lead the eye to the right place?
- Copy and microcopy: is the wording clear and helpful?
- Accessibility: contrast, touch target size, screen reader behaviour.
- Consistency with established patterns.
- Engineering trade-offs: is there a simpler way to get the same result?

You can see a screenshot of the frame the comment is attached to, the comment itself and the earlier messages in its thread. You cannot see design tokens, exact pixel or colour values, component variants, prototypes or flows beyond this screen.

Example, for "is this button too small?":
"Yes, make it at least 44px tall, which is the iOS and Android touch target minimum. At the current size mobile users will miss it. Give the label more horizontal padding too."

Example, for "what should this error message say?":
"Say what went wrong and how to fix it. Instead of 'Invalid input' try 'Email address is missing the @ symbol'. Users should never have to guess what they did wrong.\""""

FALLBACK_REPLY = "I couldn't generate a response."

NO_SCREENSHOT_NOTE = "(No screenshot available - the comment may not be pinned to a specific element)"


def get_system_prompt(override: Optional[str] = None) -> str:
    """Return the custom system prompt when one is set, else the built-in one"""
    if override and override.strip():
        return override
    return SYSTEM_PROMPT


def render_user_prompt(context: "ProcessingContext") -> str:
    """
    Render the text block sent alongside the (optional) screenshot.

    Layout:
    - who commented and in which file
    - pinned element id, screenshot availability
    - earlier messages in the thread, generated ones labelled "AI"
    - the comment being answered
    """
    lines = [
        f"Figma comment from {context.author_handle}",
        f"File: {context.document_name}",
    ]

    if context.anchored_element_id:
        lines.append(f"(Comment is pinned to element ID: {context.anchored_element_id})")

    lines.append("")
    if context.image_base64:
        lines.append("The image above shows the screen/frame where this comment was made.")
    else:
        lines.append(NO_SCREENSHOT_NOTE)

    has_history = bool(context.prior_messages)
    if has_history:
        lines.extend(["", "---", "", "Previous conversation in this thread:"])
        for message in context.prior_messages:
            speaker = "AI" if message.is_generated else message.author_handle
            lines.append(f"{speaker}: {message.text}")
            lines.append("")

    heading = "New message" if has_history else "Comment"
    lines.extend([
        "",
        "---",
        "",
        f"{heading} from {context.author_handle}:",
        context.comment_text,
        "",
        "Please provide helpful design feedback or answer the question.",
    ])

    return "\n".join(lines)
