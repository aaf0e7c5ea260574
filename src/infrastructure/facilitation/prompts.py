"""Prompt builders for conversation analysis, question generation, timing and summaries.

The connection taxonomy and guidance are static constants shared by the
facilitation clients and the built-in AI service.
"""

from src.domain.entities.conversation import ALL_DOMAINS, ConversationAnalysis, QuestionContext
from src.domain.services.timing_policy import TIMING_WINDOW_CHARS

# Transcript tail and history depth used when asking for a question.
QUESTION_TRANSCRIPT_CHARS = 500
QUESTION_HISTORY_DEPTH = 3

CORE_THEORIES = """
Based on psychology research on interpersonal processes and connection:

CORE THEORIES:
1. Social Penetration Theory (SPT): Relationships deepen through increasing breadth and depth of self-disclosure over time
2. Uncertainty Reduction Theory (URT): People seek information about others to reduce uncertainty and make interaction predictable
3. Strong social connections affect both psychological and physiological health outcomes
"""

CONNECTION_RESEARCH = (
    CORE_THEORIES
    + """
KEY DOMAINS FOR CONNECTION:
1. VALUES/BELIEFS: Understanding what matters to someone, their principles, passions
2. PERSONAL HISTORY/IDENTITY: Past experiences, upbringing, cultural background
3. ASPIRATIONS/GOALS/MOTIVATIONS: Future direction, what drives them, meaning
4. EMOTIONS/INNER WORLD: Feelings, fears, joys, vulnerabilities
5. RELATIONAL STYLE/PREFERENCES: Communication style, boundaries, how they relate
6. CURRENT SITUATION/CONTEXT: What's happening now, current challenges/joys

BEST PRACTICES:
- Use open-ended questions to invite stories
- Practice active listening and reflect back
- Encourage mutual sharing (two-way disclosure)
- Recognize depth takes time - start superficial, move deeper
- Be mindful of readiness - trust and safety matter
- Pay attention to non-verbal cues
"""
)

QUESTION_SYSTEM = f"""You are an expert facilitator of deep human connection, based on "We're Not Really Strangers" principles.

{CONNECTION_RESEARCH}

Your role is to generate questions that:
1. Build on what's been discussed (continuity)
2. Deepen the conversation in unexplored domains
3. Match the vibe (fun, thoughtful, or deep)
4. Feel natural and timely
5. Encourage mutual vulnerability and self-disclosure
6. Are open-ended to invite stories

VIBE GUIDELINES:
- Fun: Light, playful, creative - but still meaningful
- Thoughtful: Intellectual, reflective, perspective-shifting
- Deep: Vulnerable, emotional, intimate
- Mixed: Balance of all three"""

ANALYSIS_SYSTEM = f"""You are an expert in interpersonal psychology and building deep human connections.

{CONNECTION_RESEARCH}

Analyze conversations to identify which connection domains have been explored and suggest next areas to deepen the relationship."""

TIMING_SYSTEM = (
    "You are an expert facilitator. Determine if this is a good moment to introduce a new question, "
    "or if the conversation is flowing naturally and should continue uninterrupted."
)

SUMMARY_SYSTEM = f"""You are an expert at analyzing conversations and identifying themes, insights, and connection depth.

{CORE_THEORIES}"""


def _explored_list(analysis: ConversationAnalysis) -> str:
    return ", ".join(d.value for d in analysis.explored_domains) or "none yet"


def build_question_prompts(context: QuestionContext) -> tuple[str, str]:
    """Build (system, user) prompts for generating the next question."""
    analysis = context.conversation_analysis
    suggested = analysis.suggested_domain.value
    recent = context.recent_transcript[-QUESTION_TRANSCRIPT_CHARS:]
    previous = ", ".join(context.asked_questions[-QUESTION_HISTORY_DEPTH:])
    user = f"""Generate the next question for this conversation.

Context:
- Current Vibe: {context.vibe}
- Connection Depth: {analysis.connection_depth}/10
- Explored Domains: {_explored_list(analysis)}
- Suggested Domain: {suggested}
- Reasoning: {analysis.reasoning}
- Recent Conversation: {recent}
- Previously Asked: {previous}

Generate ONE question that:
1. Fits the {context.vibe} vibe
2. Explores the {suggested} domain
3. Builds naturally on the recent conversation
4. Hasn't been asked before
5. Encourages deeper connection

Return JSON with:
- question: the question text
- domain: the connection domain it targets
- followUp: (optional) a gentle follow-up prompt if they go shallow
- reasoning: why this question fits the moment

Respond ONLY with valid JSON."""
    return QUESTION_SYSTEM, user


def build_analysis_prompt(transcript: str, vibe: str, asked_questions: list[str]) -> str:
    """Build the user prompt for domain analysis."""
    domains = ", ".join(d.value for d in ALL_DOMAINS)
    return f"""Analyze this conversation transcript and identify which connection domains have been explored.

Current Vibe: {vibe}
Transcript: {transcript}
Previously Asked Questions: {", ".join(asked_questions)}

Return a JSON object with:
- exploredDomains: array of domains that have been discussed ({domains})
- unexploredDomains: array of domains not yet explored
- connectionDepth: number 0-10 indicating how deep the connection is
- suggestedDomain: the next domain to explore for deepening connection
- reasoning: brief explanation of your analysis

Respond ONLY with valid JSON."""


def build_timing_prompt(recent_transcript: str) -> str:
    """Build the yes/no prompt for question timing."""
    return f"""Recent conversation:
{recent_transcript[-TIMING_WINDOW_CHARS:]}

Is this a good moment to introduce a new question? Consider:
- Is the conversation flowing naturally? (if yes, don't interrupt)
- Has there been a natural pause or lull? (good time)
- Are they deep in a topic? (let them continue)
- Has the energy dropped? (good time for new question)

Reply with just "yes" or "no"."""


def build_summary_prompt(transcript: str, vibe: str, duration: int, questions_answered: int) -> str:
    """Build the user prompt for the end-of-session summary."""
    return f"""Analyze this conversation and provide a summary.

Duration: {duration} minutes
Vibe: {vibe}
Questions Answered: {questions_answered}
Full Transcript: {transcript}

Return JSON with:
- keyThemes: array of 3-5 main themes discussed (short phrases)
- insights: 2-3 sentence summary of what made this conversation meaningful
- connectionDepth: 0-10 score of how deep the connection went

Respond ONLY with valid JSON."""
