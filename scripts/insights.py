"""Rule-based coaching recommendations from aggregated pipeline metrics.

Each rule inspects the metrics dict built by analytics.build_snapshot and
returns at most one message. Rules run in RULES order; every rule is
evaluated and the combined list is then truncated to max_insights, so the
output for a given metrics dict is always the same.

Metrics keys read here:
    total_jobs, funnel, response_rate, offer_rate, deadlines, time_to_offer,
    weekly_goal, this_week_applications, industry_counts, segments, timeline
"""

from conversion_report import low_segments, top_segment

MAX_INSIGHTS = 5

LOW_OFFER_RATE = 0.05
HIGH_OFFER_RATE = 0.10
LOW_RESPONSE_RATE = 0.20
HIGH_RESPONSE_RATE = 0.30
MIN_ADHERENCE = 0.80
CONCENTRATION_SHARE = 0.40
LONG_TIME_TO_OFFER = 30
TOP_SEGMENT_RATE = 20
LOW_VOLUME = 10
MIN_REJECTIONS = 3

HEALTHY_MESSAGE = (
    "Your metrics look healthy! Continue monitoring trends and applying "
    "consistently."
)


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def rule_start_tracking(m: dict) -> str | None:
    if m["total_jobs"] == 0:
        return (
            "Start tracking your applications: add each job with its status, "
            "dates, company size, industry and application method to unlock "
            "response-rate and funnel insights."
        )
    return None


def rule_low_volume(m: dict) -> str | None:
    total = m["total_jobs"]
    if 0 < total < LOW_VOLUME:
        return (
            f"Limited application volume ({_plural(total, 'application')}). Increase "
            "weekly applications to 5-7 to build a larger pipeline and learn "
            "faster."
        )
    return None


def rule_offer_rate(m: dict) -> str | None:
    total = m["total_jobs"]
    rate = m["offer_rate"]
    if rate < LOW_OFFER_RATE and total > 10:
        return (
            f"Low offer rate ({rate * 100:.1f}%). Consider tailoring resumes more "
            "closely to job requirements and applying to positions that better "
            "match your experience level."
        )
    if rate >= HIGH_OFFER_RATE and total > 5:
        return (
            f"Excellent offer rate ({rate * 100:.1f}%)! Your application strategy "
            "is working well. Keep applying the same tailoring approach."
        )
    return None


def rule_response_rate(m: dict) -> str | None:
    rate = m["response_rate"]
    if rate < LOW_RESPONSE_RATE and m["total_jobs"] > 10:
        return (
            f"Low response rate ({rate * 100:.1f}%). Review your resume, submit "
            "early in the posting cycle, and follow up with hiring managers "
            "after one week."
        )
    if rate >= HIGH_RESPONSE_RATE:
        return (
            f"Strong response rate ({rate * 100:.1f}%)! Your applications are "
            "getting noticed. Focus on interview preparation."
        )
    return None


def rule_deadlines(m: dict) -> str | None:
    dl = m["deadlines"]
    decided = dl["met"] + dl["missed"]
    if decided == 0 or dl["adherence"] >= MIN_ADHERENCE:
        return None
    miss_rate = (1 - dl["adherence"]) * 100
    return (
        f"You've missed {_plural(dl['missed'], 'deadline')} ({miss_rate:.0f}% miss "
        "rate). Set reminders 2-3 days before each deadline to improve adherence."
    )


def rule_weekly_goal(m: dict) -> str | None:
    goal = m["weekly_goal"]
    done = m["this_week_applications"]
    if goal <= 0:
        return None
    if done < goal:
        behind = goal - done
        return (
            f"You're {_plural(behind, 'application')} behind your weekly goal of "
            f"{goal}. Dedicate focused time today to catch up."
        )
    return (
        "You've met your weekly goal! Review applications at the companies "
        "you're most interested in, or raise your goal for next week."
    )


def rule_industry_concentration(m: dict) -> str | None:
    counts = m["industry_counts"]
    total = m["total_jobs"]
    if not counts or total == 0:
        return None
    industry, count = min(counts.items(), key=lambda item: (-item[1], item[0]))
    if count > total * CONCENTRATION_SHARE:
        return (
            f"You're focusing heavily on {industry} ({_plural(count, 'application')}). "
            "Consider diversifying to related industries to increase opportunities."
        )
    return None


def rule_time_to_offer(m: dict) -> str | None:
    days = m["time_to_offer"]
    if days > LONG_TIME_TO_OFFER and m["funnel"].get("Offer", 0) > 0:
        return (
            f"Your average time to offer is {days:.0f} days. Long hiring processes "
            "are normal, but consider prioritizing companies with faster decision "
            "cycles."
        )
    return None


def rule_phone_screen_stall(m: dict) -> str | None:
    phone = m["funnel"].get("Phone Screen", 0)
    interviews = m["funnel"].get("Interview", 0)
    if phone > 5 and interviews < phone * 0.5:
        return (
            "You're getting phone screens but not advancing to interviews. Research "
            "companies before calls, practice behavioral questions, and articulate "
            "your value clearly."
        )
    return None


def rule_interview_stall(m: dict) -> str | None:
    interviews = m["funnel"].get("Interview", 0)
    offers = m["funnel"].get("Offer", 0)
    if interviews > 3 and offers < interviews * 0.3:
        return (
            "You're reaching interviews but not converting to offers. Request "
            "feedback from interviewers and practice technical and case questions "
            "more deeply."
        )
    return None


def rule_rejection_heavy(m: dict) -> str | None:
    funnel = m["funnel"]
    rejected = funnel.get("Rejected", 0)
    # Interview and Offer count as successes.
    successful = funnel.get("Interview", 0) + funnel.get("Offer", 0)
    if rejected > successful and rejected >= MIN_REJECTIONS:
        return (
            f"You have more rejections ({rejected}) than successes ({successful}). "
            "Raise your role-fit bar before applying, customize each application, "
            "and ask for feedback on the ones that do not move forward."
        )
    return None


def rule_top_segment(m: dict) -> str | None:
    best = top_segment(m["segments"])
    if best and best["response_rate"] > TOP_SEGMENT_RATE:
        return (
            f"Your highest response rate is {best['response_rate']}% for "
            f"{best['value']} ({best['category']}). Focus more applications here."
        )
    return None


def rule_low_segments(m: dict) -> str | None:
    weak = low_segments(m["segments"])
    if not weak:
        return None
    names = ", ".join(s["value"] for s in weak)
    return (
        f"Low response rates from {names}. Consider revising your approach or "
        "targeting different opportunities."
    )


def rule_slow_stage(m: dict) -> str | None:
    slow = [row for row in m["timeline"] if row["status"] == "slow"]
    if not slow:
        return None
    worst = min(slow, key=lambda row: (-row["delta"], row["stage"]))
    return (
        f"Your {worst['stage']} stage is {worst['delta']:.1f} days slower than "
        "average. Consider following up more proactively."
    )


RULES = (
    ("start_tracking", rule_start_tracking),
    ("low_volume", rule_low_volume),
    ("offer_rate", rule_offer_rate),
    ("response_rate", rule_response_rate),
    ("deadlines", rule_deadlines),
    ("weekly_goal", rule_weekly_goal),
    ("industry_concentration", rule_industry_concentration),
    ("time_to_offer", rule_time_to_offer),
    ("phone_screen_stall", rule_phone_screen_stall),
    ("interview_stall", rule_interview_stall),
    ("rejection_heavy", rule_rejection_heavy),
    ("top_segment", rule_top_segment),
    ("low_segments", rule_low_segments),
    ("slow_stage", rule_slow_stage),
)


def generate_insights(metrics: dict, max_insights: int = MAX_INSIGHTS) -> list[str]:
    """Run every rule in order and keep the first max_insights messages.

    Falls back to a single healthy-metrics message when no rule fires.
    """
    if max_insights < 1:
        raise ValueError(f"max_insights must be >= 1, got {max_insights}")

    insights = []
    for _name, rule in RULES:
        message = rule(metrics)
        if message:
            insights.append(message)

    if not insights:
        insights.append(HEALTHY_MESSAGE)

    return insights[:max_insights]
