from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from models.course import Course
from models.profile import Profile
from models.round import Round

NO_COURSE_LABEL = "None yet"


def most_played_course(courses: Iterable[Course]) -> Optional[Course]:
    """Course with the highest times_played; first one wins ties."""
    best: Optional[Course] = None
    for course in courses:
        if best is None or course.times_played > best.times_played:
            best = course
    return best


def stat_tiles(profile: Optional[Profile], courses: List[Course]) -> Dict[str, Any]:
    """Dashboard tiles. Counters come from the profile; the course list fills gaps."""
    total_courses = (profile.total_courses if profile else 0) or len(courses)
    total_rounds = profile.total_rounds if profile else 0

    most_played = None
    if profile and profile.most_played_course_id:
        most_played = next(
            (c for c in courses if c.id == profile.most_played_course_id), None
        )
    if most_played is None:
        most_played = most_played_course(courses)

    last_played: Optional[date] = profile.last_played_date if profile else None
    if last_played is None:
        played = [c.last_played for c in courses if c.last_played]
        last_played = max(played) if played else None

    return {
        "total_courses": total_courses,
        "total_rounds": total_rounds,
        "most_played_course": most_played.name if most_played else NO_COURSE_LABEL,
        "last_played_date": last_played,
    }


def map_markers(courses: Iterable[Course]) -> List[Dict[str, Any]]:
    """One marker per course with known coordinates."""
    return [
        {
            "course_id": c.id,
            "name": c.name,
            "location": c.location,
            "latitude": c.latitude,
            "longitude": c.longitude,
            "times_played": c.times_played,
            "rating": c.rating,
        }
        for c in courses
        if c.has_coordinates
    ]


def round_years(rounds: Iterable[Round]) -> List[str]:
    """Distinct years with rounds, newest first."""
    return sorted({str(r.year) for r in rounds}, key=int, reverse=True)


def filter_rounds(
    rounds: Iterable[Round],
    *,
    year: Optional[str] = None,
    course_id: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Round]:
    """Apply the history filters; None or "all" disables a filter."""
    needle = (search or "").strip().lower()
    results = []
    for r in rounds:
        if year and year != "all" and str(r.year) != year:
            continue
        if course_id and r.course_id != course_id:
            continue
        if needle and needle not in r.course_name.lower():
            continue
        results.append(r)
    return results


def filter_courses(courses: Iterable[Course], search: Optional[str] = None) -> List[Course]:
    needle = (search or "").strip()
    if not needle:
        return list(courses)
    return [c for c in courses if c.matches(needle)]


def scoring_summary(rounds: Iterable[Round]) -> Dict[str, Any]:
    """Scoring average, best round and average to par over scored rounds."""
    scored = [r for r in rounds if r.score is not None]
    to_par = [r.to_par() for r in scored if r.to_par() is not None]
    best = min(scored, key=lambda r: r.score) if scored else None
    return {
        "rounds_scored": len(scored),
        "scoring_average": round(sum(r.score for r in scored) / len(scored), 1) if scored else None,
        "best_score": best.score if best else None,
        "best_round_id": best.id if best else None,
        "best_round_course": best.course_name if best else None,
        "average_to_par": round(sum(to_par) / len(to_par), 1) if to_par else None,
    }
