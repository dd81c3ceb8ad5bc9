from __future__ import annotations

import json
from typing import Any, Callable

from .models import KitVariant

KIT_VARIANTS = tuple(variant.value for variant in KitVariant)

_ANSWER_POINTS_DELIMITER = "\\n\\n\\n"


def _text(context: dict[str, Any], key: str) -> str:
    value = context.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return ""


def candidate_context_block(context: dict[str, Any]) -> str:
    lines = [
        "CONTEXT FOR ANALYSIS\n",
        f"- Job Description:\n{_text(context, 'job_description')}\n",
        f"- Candidate Profile Link: {_text(context, 'profile_link')}\n",
    ]
    if context.get("has_resume"):
        file_name = _text(context, "resume_file_name") or "resume"
        lines.append(
            f"- Candidate Resume ({file_name}): attached as a document. Read the full document with "
            "extreme depth: skills, specific projects (tech stack, goals, accomplishments, challenges), "
            "work experience, education and academic achievements.\n"
        )
    experience_context = _text(context, "experience_context")
    if experience_context:
        lines.append(f"- Additional Candidate Context: {experience_context}\n")
    return "".join(lines)


_KIT_JSON_SHAPE = (
    "JSON OUTPUT SCHEMA\n"
    "Return a single JSON object with these top level keys:\n"
    "1) competencies: array\n"
    "2) scoring_rubric: array\n\n"
    "competencies:\n"
    "- each competency has:\n"
    "  - name: string (a named skill area, for example 'System Design')\n"
    "  - importance: one of High, Medium, Low\n"
    "  - questions: array of question objects\n"
    "- each question has:\n"
    "  - question: string\n"
    "  - model_answer: string\n"
    "  - interviewer_note: string (one sentence, never shown to the candidate)\n"
    "  - type: one of Technical, Scenario, Behavioral\n"
    "  - category: Technical when type is Technical, otherwise Non-Technical\n"
    "  - difficulty: one of Naive, Beginner, Intermediate, Expert, Master\n"
    "  - estimated_time_minutes: integer (Naive 2, Beginner 4, Intermediate 6, Expert 8, Master 10 "
    "unless the question clearly needs more or less time)\n\n"
    "scoring_rubric:\n"
    "- each criterion has:\n"
    "  - name: string\n"
    "  - weight: number between 0.0 and 1.0\n"
    "- weights across all criteria MUST sum to 1.0\n\n"
    "Do not emit id fields. Identifiers are assigned after generation.\n"
)

_RUBRIC_RULES = (
    "Scoring rubric rules:\n"
    "- Provide 4 to 6 distinct criteria.\n"
    "- Every criterion must be actionable, measurable and specific: name the key technologies, skills "
    "or domain concepts from the job description that are supported by evidence in the candidate profile.\n"
    "- Avoid generic criteria such as 'Communication' unless qualified by what is communicated.\n"
    "- Weights are numbers between 0.0 and 1.0 and MUST sum to 1.0.\n\n"
)

_INTERVIEWER_ANSWER_RULES = (
    "Model answer rules:\n"
    "- Write every model answer from the INTERVIEWER'S perspective. It is a guide for judging the "
    "response, not a script for the candidate. Refer to the person as 'the candidate'.\n"
    "- Never use first-person narrative in answers.\n"
    "- Make the answer understandable by a non-technical recruiter.\n"
    "- Break the answer into 2 to 4 titled sections. Each section starts with a bold title and its "
    "indicative point value on its own line, for example '**Concept Explanation (approx. 3 points)**'.\n"
    "- Under each title explain the what, the why and the how. Sub-items may use hyphens.\n"
    "- Separate sections with a blank line.\n"
    "- End with a short 'Note:' section on how to evaluate real-life examples the candidate gives.\n"
    "- For a 'Tell me about yourself' question, outline the points from this candidate's background "
    "that make a strong introduction.\n\n"
)

_QUESTION_STYLE_RULES = (
    "Question rules:\n"
    "- Questions are crisp and direct, one or two lines at most.\n"
    "- Never include the candidate's name in a question.\n"
    "- Do not mention 'the job description' or what 'the role requires'. Phrase questions "
    "observationally (for example 'I noticed on your resume...') or probe the skill directly.\n"
    "- Do not ask whether the candidate knows a technology. Ask them to demonstrate it: architectural "
    "decisions, trade-offs, complex problems they solved, business outcomes they delivered.\n"
    "- Do not hallucinate. Every referenced skill, project or requirement must appear in the job "
    "description or the candidate profile/resume.\n\n"
)

_CANDIDATE_SCENARIO_RULES = (
    "Candidate scenario analysis (do this before writing questions):\n"
    "- Infer the recruitment scenario: overqualified, junior, domain shifter, career changer, "
    "recent graduate, academic, or a direct match.\n"
    "- Years vs. impact: value the quality and impact of project work over formal years. A candidate "
    "with 3 years who led 2 major projects can be stronger than one with 5 years of maintenance work.\n"
    "- Skill transferability: when the candidate used a related but different technology, probe core "
    "principles and how quickly they adapt.\n"
    "- Background differences: for industry or role changes, probe adaptability and learning strategy.\n"
    "- Career history: for gaps, frequent changes or ambiguous titles, guide the interviewer to assess "
    "self-awareness, proactive learning and clear motivation constructively.\n"
    "- Growth mindset: include probes on learning strategies, reaction to feedback and resilience in "
    "the face of failure or ambiguity.\n"
    "- Prefer substance over buzzwords: quantifiable achievements and problem solving.\n\n"
)


def _standard_kit_prompt(context: dict[str, Any]) -> str:
    return (
        "You are a world-class recruitment strategist acting as a supportive companion to a recruiter. "
        "Your goal is to build a complete, ready-to-use interview kit for one candidate and one role.\n\n"
        "CRITICAL: Before writing anything, THOROUGHLY analyze and synthesize ALL inputs. Treat the profile "
        "link as if you were reading the candidate's entire live profile. The resume, when attached, is the "
        "most important document.\n\n"
        f"{candidate_context_block(context)}\n"
        "TASK\n"
        "1. Identify 4 to 6 competencies that matter most for this role AND can be evidenced or probed "
        "from the candidate's background. Rate each competency High, Medium or Low importance.\n"
        "2. For each competency write 3 to 5 questions. Mix Technical, Scenario and Behavioral types. "
        "Start the kit with a 'Tell me about yourself' question tailored to this candidate.\n"
        "3. Classify every question by type, category and difficulty, and estimate the minutes needed.\n"
        "4. Write a model answer and an interviewer note for every question.\n"
        "5. Build a weighted scoring rubric for the whole kit.\n\n"
        f"{_CANDIDATE_SCENARIO_RULES}"
        f"{_QUESTION_STYLE_RULES}"
        f"{_INTERVIEWER_ANSWER_RULES}"
        "Interviewer note rules:\n"
        "- One sentence explaining the strategic purpose of the question, for example 'This tests the "
        "candidate's ability to articulate the business impact of their work.'\n\n"
        f"{_RUBRIC_RULES}"
        f"{_KIT_JSON_SHAPE}\n"
        "Return ONLY the JSON object."
    )


def _technical_kit_prompt(context: dict[str, Any]) -> str:
    example = {
        "competencies": [
            {
                "name": "SQL and Data Modelling",
                "importance": "High",
                "questions": [
                    {
                        "question": "What is the primary difference between a LEFT JOIN and an INNER JOIN?",
                        "model_answer": (
                            "INNER JOIN Definition\nReturns records that have matching values in both "
                            "tables, effectively intersecting the datasets.\n\n\nLEFT JOIN Definition\n"
                            "Returns all records from the left table and the matched records from the "
                            "right table. Without a match the right side is NULL."
                        ),
                        "interviewer_note": "Checks relational fundamentals used daily in reporting work.",
                        "type": "Technical",
                        "category": "Technical",
                        "difficulty": "Beginner",
                        "estimated_time_minutes": 4,
                    }
                ],
            }
        ],
        "scoring_rubric": [
            {"name": "SQL correctness on multi-table joins and aggregations", "weight": 0.35},
            {"name": "Power BI data modelling and DAX measure design", "weight": 0.25},
            {"name": "Data cleaning and validation with Excel and Python pandas", "weight": 0.2},
            {"name": "KPI definition and dashboard performance tuning", "weight": 0.2},
        ],
    }
    example_json = json.dumps(example, ensure_ascii=False, indent=2)
    return (
        "You are an expert technical assessment architect. Generate insightful, role-specific technical "
        "questions from the Job Description so the assessment accurately gauges the candidate's practical "
        "and theoretical expertise.\n\n"
        "Core directives:\n"
        "1. The Job Description is the single source of truth. Every question maps to a technical skill, "
        "tool or responsibility explicitly stated in it. Do not introduce technologies it does not mention.\n"
        "2. Balance theory and practice: probe the 'why' (foundations) and the 'how' (application).\n"
        "3. Clarity: each question is direct, unambiguous and focused on a single technical concept, "
        "ideally 10 to 15 words. No compound or subjective questions.\n"
        "4. No behavioral questions. Omit teamwork, past experience and opinion questions "
        "(for example 'Describe a time when...', 'What is your favorite...'). Every question has type "
        "Technical and category Technical.\n\n"
        "Candidate context:\n"
        "- The candidate profile and resume may provide context but are not the primary source of topics.\n"
        "- At most two questions may be tailored to the candidate's experience, and only where it "
        "directly aligns with a core requirement of the Job Description.\n\n"
        f"{candidate_context_block(context)}\n"
        "TASK\n"
        "1. Analyze the Job Description and identify the key technical competencies.\n"
        "2. Create exactly 30 questions in total, grouped under those competencies.\n"
        "3. Provide a gold-standard model answer for every question:\n"
        "   - The answer is a single string of multiple points. Each point has a title line and a "
        f"detailed explanation on the next line. Separate complete points with triple newlines ({_ANSWER_POINTS_DELIMITER}).\n"
        "   - Answers are accurate, expert-level and serve as a clear evaluation benchmark.\n"
        "   - Write the answer as the ideal candidate would articulate it. Do not include instructions "
        "for the interviewer in the answer; put them in interviewer_note.\n"
        "4. Build a weighted scoring rubric for the assessment.\n\n"
        f"{_RUBRIC_RULES}"
        f"{_KIT_JSON_SHAPE}\n"
        "Example (hypothetical Data Analyst job description, style and structure only):\n"
        f"{example_json}\n\n"
        "Return ONLY the JSON object."
    )


def _screening_kit_prompt(context: dict[str, Any]) -> str:
    return (
        "You are an experienced recruiter preparing a first-round screening call of about 30 minutes. "
        "The screen decides whether the candidate moves on to in-depth technical rounds.\n\n"
        f"{candidate_context_block(context)}\n"
        "TASK\n"
        "1. Pick 2 or 3 competencies that are must-haves for the role and can be verified quickly.\n"
        "2. Write 2 or 3 questions per competency. Keep difficulty between Naive and Intermediate; "
        "the screen verifies claims, it does not stress-test depth.\n"
        "3. Open with a 'Tell me about yourself' question tailored to this candidate and include one "
        "question on motivation for this specific role.\n"
        "4. Flag anything on the profile that needs clarification (gaps, short tenures, ambiguous titles) "
        "with a neutral, constructive question.\n"
        "5. Keep the total of estimated_time_minutes across all questions at or below 30.\n"
        "6. Build a weighted scoring rubric with 3 or 4 criteria suited to a go/no-go decision.\n\n"
        f"{_QUESTION_STYLE_RULES}"
        f"{_INTERVIEWER_ANSWER_RULES}"
        "Weights are numbers between 0.0 and 1.0 and MUST sum to 1.0.\n\n"
        f"{_KIT_JSON_SHAPE}\n"
        "Return ONLY the JSON object."
    )


_KIT_PROMPT_BUILDERS: dict[str, Callable[[dict[str, Any]], str]] = {
    KitVariant.standard.value: _standard_kit_prompt,
    KitVariant.technical.value: _technical_kit_prompt,
    KitVariant.screening.value: _screening_kit_prompt,
}


def interview_kit_prompt(context: dict[str, Any], variant: str = "standard") -> str:
    builder = _KIT_PROMPT_BUILDERS.get(variant)
    if builder is None:
        raise ValueError(f"Unknown interview kit variant: {variant}")
    return builder(context)


def customize_interview_kit_prompt(context: dict[str, Any], kit: dict[str, Any]) -> str:
    kit_json = json.dumps(kit, ensure_ascii=False, indent=2, default=str)
    return (
        "You are a world-class recruitment strategist acting as a supportive recruiter companion. "
        "Intelligently refine an existing, user-edited interview kit. Every question must validate the "
        "candidate's claimed skills and experience, pushing for depth and specific examples rather than "
        "simple confirmations.\n\n"
        "CRITICAL: Before making any refinement, THOROUGHLY analyze and synthesize ALL inputs. The resume, "
        "when attached, is the most important document and must heavily influence your refinements.\n\n"
        "1. Original context (the candidate and the role):\n"
        f"{candidate_context_block(context)}\n"
        "2. User's edits (the current state of the interview kit):\n"
        f"{kit_json}\n\n"
        "The combined context tells you the candidate's likely scenario (for example overqualified, junior, "
        "domain shifter) and the user's intent.\n\n"
        "TASK\n"
        "Refine the kit. Respect the user's edits, but use expert judgment to improve quality, consistency "
        "and strategic alignment.\n\n"
        "Refinement principles:\n"
        "- Crisp, professional language: concise, clear questions. Tighten verbose or unclear user edits.\n"
        "- Verify, don't just accept: phrase questions about resume skills to test depth (complex "
        "implementations, trade-off decisions, problem solving beyond surface knowledge).\n"
        "- Ground in evidence: any skill, project or requirement you reference must appear in the job "
        "description or the candidate profile/resume. Do not mention 'the job description' or what "
        "'the role requires' in questions.\n"
        "- Maintain strategic intent: if the candidate looks overqualified, keep guidance for questions "
        "like 'What are your career goals?' focused on alignment with the role, even after a small edit.\n"
        "- Probe for growth mindset: learning strategies, reaction to feedback, resilience.\n"
        "- Experience nuances: guidance values impact of project work over formal years.\n"
        "- Skill transferability and background differences: probe core principles and adaptability.\n"
        "- Career history nuances: guide the interviewer to assess gaps or frequent changes constructively.\n"
        "- Validate classifications: if an edit changed what a question tests, update type, category, "
        "difficulty and estimated_time_minutes to match.\n"
        "- Non-traditional profiles: keep focus on practical application of transferable skills.\n"
        "- Substance over form: deprioritize buzzwords.\n"
        "- Variety: if two questions are near duplicates, rephrase one.\n\n"
        f"{_INTERVIEWER_ANSWER_RULES}"
        f"{_RUBRIC_RULES}"
        "Identifier rules:\n"
        "- Preserve the id field of every competency, question and rubric criterion EXACTLY as given.\n"
        "- Do not invent ids for entities that had none.\n\n"
        "Return ONE JSON object with the same structure as the input kit: competencies (with id, name, "
        "importance, questions) and scoring_rubric (with id, name, weight).\n"
        "Return ONLY the JSON object."
    )


def job_description_summary_prompt(job_description: str) -> str:
    return (
        "You are a senior recruiter. Summarize the key requirements and responsibilities of the job "
        "description below in a concise manner: must-have skills, nice-to-have skills, seniority, and the "
        "main responsibilities.\n"
        'Return ONLY one JSON object: {"summary": "..."}\n\n'
        f"Job Description:\n{job_description}\n"
    )


def resume_skills_prompt(file_name: str | None = None) -> str:
    label = file_name.strip() if isinstance(file_name, str) and file_name.strip() else "resume"
    return (
        "You are a helpful assistant that extracts technical skills from a resume.\n"
        f"The candidate's resume ({label}) is attached as a document. Identify and list the technical "
        "skills it mentions: languages, frameworks, tools, platforms and techniques. Do not include soft "
        "skills. Do not invent skills that are not in the document.\n"
        'Return ONLY one JSON object: {"technical_skills": ["..."]}\n'
    )


def potential_projects_prompt(job_description: str, candidate_resume: str) -> str:
    return (
        "You are an expert recruiter. Analyze the job description and the candidate's resume to identify "
        "projects that are worth discussing during an interview. Focus on projects where the candidate "
        "gained valuable experience and solved real-world problems.\n"
        "For each project give its name, a brief summary of the project and its relevance to real-world "
        "problems, and the key skills the candidate used.\n"
        "Return ONLY one JSON object:\n"
        '{"projects": [{"project_name": "...", "summary": "...", "key_skills": "..."}]}\n\n'
        f"Job Description:\n{job_description}\n\n"
        f"Candidate Resume:\n{candidate_resume}\n"
    )
