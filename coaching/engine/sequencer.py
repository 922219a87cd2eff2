"""NeedScore sequencer - ranks a role's skills and selects the week's constrained picks."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Set, Tuple

from coaching.config import SequencerConfig
from coaching.domain.values import RankedRecommendation, SequencerResult, SkillCandidate
from coaching.services.constraints import (
    candidate_problem,
    lapsing_domains,
    passes_cooldown,
    required_distinct_domains,
)
from coaching.services.scoring import ScoreBreakdown, score_candidate

Scored = Tuple[SkillCandidate, ScoreBreakdown]


def _rank_key(pair: Scored):
    candidate, breakdown = pair
    # Higher score first; equal scores resolve to the lower skill id
    return (-breakdown.final_score, candidate.skill_id)


def _recommendation(pair: Scored, forced: bool = False) -> RankedRecommendation:
    candidate, breakdown = pair
    return RankedRecommendation(
        skill_id=candidate.skill_id,
        domain_id=candidate.domain_id,
        domain_name=candidate.domain_name,
        name=candidate.name,
        final_score=breakdown.final_score,
        primary_reason_code=breakdown.reason_code,
        primary_reason_value=breakdown.reason_value,
        forced_for_coverage=forced,
    )


def _split_valid(candidates: Iterable[SkillCandidate], logs: List[str]):
    valid: List[SkillCandidate] = []
    excluded: List[Tuple[Optional[int], str]] = []
    seen: Set[int] = set()
    for candidate in candidates:
        problem = candidate_problem(candidate)
        if problem is None and candidate.skill_id in seen:
            problem = "duplicate skill_id"
        if problem is not None:
            excluded.append((candidate.skill_id, problem))
            logs.append(f"Excluded skill {candidate.skill_id}: {problem}")
            continue
        seen.add(candidate.skill_id)
        valid.append(candidate)
    return valid, excluded


def _coverage_picks(
    valid: List[SkillCandidate],
    eligible: List[Scored],
    cfg: SequencerConfig,
    logs: List[str],
) -> List[Scored]:
    """Best eligible representative of each lapsing domain, most-lapsed domain first."""
    lapsing = lapsing_domains(valid, cfg)
    if not lapsing:
        return []

    representatives: Dict[int, Tuple[int, Scored]] = {}
    for index, pair in enumerate(eligible):
        domain_id = pair[0].domain_id
        if domain_id in lapsing and domain_id not in representatives:
            representatives[domain_id] = (index, pair)

    for domain_id in sorted(set(lapsing) - set(representatives)):
        logs.append(f"Coverage: domain {domain_id} is lapsing but has no eligible candidates")

    ordered = sorted(representatives, key=lambda d: (-lapsing[d], representatives[d][0]))
    if len(ordered) > cfg.picks_per_week:
        logs.append(
            f"Coverage: {len(ordered)} domains lapsing, only {cfg.picks_per_week} picks available; "
            f"deferring domains {ordered[cfg.picks_per_week:]}"
        )
    return [representatives[d][1] for d in ordered[: cfg.picks_per_week]]


def sequence(
    candidates: Iterable[SkillCandidate],
    cfg: Optional[SequencerConfig] = None,
    week_of: Optional[date] = None,
) -> SequencerResult:
    """
    Score every candidate and select the week's skills.

    Selection runs high-to-low by final score under three constraints:
    cooldown (recently practiced skills are ineligible), coverage (a domain
    about to go uncovered for a full window gets its best skill forced in)
    and diversity (at least ``min_distinct_domains`` domains whenever that
    many have eligible candidates).

    Args:
        candidates: Skill candidates for one role as of the target week
        cfg: Sequencer configuration (defaults when omitted)
        week_of: Target week, echoed on the result

    Returns:
        SequencerResult with the full ranking, the selection and run logs
    """
    cfg = cfg or SequencerConfig()
    logs: List[str] = []

    valid, excluded = _split_valid(candidates, logs)
    if not valid:
        return SequencerResult(week_of=week_of, excluded=tuple(excluded), logs=tuple(logs))

    scored: List[Scored] = sorted(((c, score_candidate(c, cfg)) for c in valid), key=_rank_key)
    rank_index = {pair[0].skill_id: i for i, pair in enumerate(scored)}

    eligible = [pair for pair in scored if passes_cooldown(pair[0], cfg)]
    blocked = tuple(pair[0].skill_id for pair in scored if not passes_cooldown(pair[0], cfg))
    if blocked:
        logs.append(f"Cooldown ({cfg.cooldown_weeks}w) blocked skills {list(blocked)}")

    selected: List[Scored] = []
    selected_ids: Set[int] = set()
    used_domains: Set[int] = set()
    forced_ids: Set[int] = set()

    def add(pair: Scored) -> None:
        selected.append(pair)
        selected_ids.add(pair[0].skill_id)
        used_domains.add(pair[0].domain_id)

    for pair in _coverage_picks(valid, eligible, cfg, logs):
        add(pair)
        forced_ids.add(pair[0].skill_id)
        logs.append(f"Coverage: forced skill {pair[0].skill_id} for domain {pair[0].domain_id}")

    available_domains = len({pair[0].domain_id for pair in eligible})
    needed_domains = required_distinct_domains(available_domains, cfg)

    # Greedy fill; while diversity is unmet only new domains are accepted
    for pair in eligible:
        if len(selected) >= cfg.picks_per_week:
            break
        if pair[0].skill_id in selected_ids:
            continue
        if len(used_domains) < needed_domains and pair[0].domain_id in used_domains:
            continue
        add(pair)

    for pair in eligible:
        if len(selected) >= cfg.picks_per_week:
            break
        if pair[0].skill_id not in selected_ids:
            add(pair)

    if len(used_domains) < cfg.min_distinct_domains and len(selected) >= cfg.min_distinct_domains:
        logs.append(
            f"Diversity relaxed: only {available_domains} domain(s) had eligible candidates "
            f"(target {cfg.min_distinct_domains})"
        )
    if len(selected) < cfg.picks_per_week:
        logs.append(f"Only {len(selected)} of {cfg.picks_per_week} picks available after cooldown")

    selected.sort(key=lambda pair: rank_index[pair[0].skill_id])
    return SequencerResult(
        week_of=week_of,
        ranked=tuple(_recommendation(pair) for pair in scored),
        selected=tuple(_recommendation(pair, pair[0].skill_id in forced_ids) for pair in selected),
        cooldown_blocked=blocked,
        forced_skill_ids=tuple(sorted(forced_ids, key=rank_index.__getitem__)),
        excluded=tuple(excluded),
        logs=tuple(logs),
    )


def advance_week(candidates: Iterable[SkillCandidate], result: SequencerResult) -> List[SkillCandidate]:
    """Age candidate history by one week after ``result``'s selection is practiced."""
    selected_ids = {r.skill_id for r in result.selected}
    advanced: List[SkillCandidate] = []
    for c in candidates:
        if candidate_problem(c) is not None:
            advanced.append(c)
        elif c.skill_id in selected_ids:
            advanced.append(replace(c, last_practiced_weeks_ago=1, retest_due=False))
        elif c.never_practiced:
            advanced.append(c)
        else:
            advanced.append(replace(c, last_practiced_weeks_ago=c.last_practiced_weeks_ago + 1))
    return advanced


def simulate(
    candidates: Iterable[SkillCandidate],
    weeks: int,
    cfg: Optional[SequencerConfig] = None,
    start_week: Optional[date] = None,
) -> List[SequencerResult]:
    """Run the sequencer for ``weeks`` consecutive weeks, feeding each selection into the next week's history."""
    cfg = cfg or SequencerConfig()
    current = list(candidates)
    results: List[SequencerResult] = []
    for i in range(weeks):
        week = start_week + timedelta(days=7 * i) if start_week is not None else None
        result = sequence(current, cfg, week_of=week)
        results.append(result)
        current = advance_week(current, result)
    return results


def plan_next_and_preview(
    candidates: Iterable[SkillCandidate],
    cfg: Optional[SequencerConfig] = None,
    week_of: Optional[date] = None,
) -> Tuple[SequencerResult, SequencerResult]:
    """Selection for the target week plus a preview of the week after, with state advanced."""
    next_week, preview = simulate(candidates, 2, cfg, start_week=week_of)
    return next_week, preview
