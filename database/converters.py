"""Conversion between stored documents and Pydantic domain models.

Documents use camelCase field names and ISO-8601 strings for dates;
models use snake_case and real date/datetime values.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional

from models import Course, Profile, Round


def _iso(value: Optional[Any]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _to_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    # Older documents may carry a full timestamp where a date is expected
    return date.fromisoformat(value[:10])


def _to_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _drop_none(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Unset optional fields are omitted rather than stored as null."""
    return {k: v for k, v in doc.items() if v is not None}


# ================================================================
# Profile
# ================================================================

PROFILE_FIELDS = {
    "display_name": "displayName",
    "email": "email",
    "photo_url": "photoURL",
    "phone_number": "phoneNumber",
    "home_course_name": "homeCourseName",
    "home_course_location": "homeCourseLoc",
    "handicap": "handicap",
    "total_rounds": "totalRounds",
    "total_courses": "totalCourses",
    "most_played_course_id": "mostPlayedCourseId",
    "last_played_date": "lastPlayedDate",
}


def profile_from_doc(uid: str, doc: Dict[str, Any]) -> Profile:
    """users/{uid} document -> Profile model."""
    return Profile(
        id=uid,
        display_name=doc.get("displayName"),
        email=doc.get("email"),
        photo_url=doc.get("photoURL"),
        phone_number=doc.get("phoneNumber"),
        home_course_name=doc.get("homeCourseName"),
        home_course_location=doc.get("homeCourseLoc"),
        handicap=doc.get("handicap"),
        total_rounds=doc.get("totalRounds") or 0,
        total_courses=doc.get("totalCourses") or 0,
        most_played_course_id=doc.get("mostPlayedCourseId"),
        last_played_date=_to_date(doc.get("lastPlayedDate")),
    )


def profile_to_doc(profile: Profile) -> Dict[str, Any]:
    """Profile model -> users/{uid} document."""
    return _drop_none({
        "uid": profile.id,
        "displayName": profile.display_name,
        "email": profile.email,
        "photoURL": profile.photo_url,
        "phoneNumber": profile.phone_number,
        "homeCourseName": profile.home_course_name,
        "homeCourseLoc": profile.home_course_location,
        "handicap": profile.handicap,
        "totalRounds": profile.total_rounds,
        "totalCourses": profile.total_courses,
        "mostPlayedCourseId": profile.most_played_course_id,
        "lastPlayedDate": _iso(profile.last_played_date),
    })


def profile_changes_to_doc(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Partial snake_case changes -> partial camelCase document.

    Explicit None values are kept so a field can be cleared.
    """
    doc = {}
    for name, value in changes.items():
        if name not in PROFILE_FIELDS:
            raise KeyError(f"Unknown profile field: {name}")
        doc[PROFILE_FIELDS[name]] = _iso(value) if isinstance(value, date) else value
    return doc


# ================================================================
# Course
# ================================================================

def course_from_doc(course_id: str, doc: Dict[str, Any]) -> Course:
    """users/{uid}/coursesPlayed/{id} document -> Course model."""
    return Course(
        id=course_id,
        name=doc["name"],
        location=doc.get("location") or "",
        address=doc.get("address"),
        latitude=doc.get("lat") or 0.0,
        longitude=doc.get("lng") or 0.0,
        country=doc.get("country") or "",
        state=doc.get("state"),
        rating=doc.get("rating"),
        times_played=doc.get("timesPlayed") or 0,
        last_played=_to_date(doc.get("lastPlayed")),
        added_by_id=doc.get("addedById"),
        added_on=_to_date(doc.get("addedOn")),
    )


def course_to_doc(course: Course) -> Dict[str, Any]:
    """Course model -> document (the id lives in the path, not the body)."""
    return _drop_none({
        "name": course.name,
        "location": course.location,
        "address": course.address,
        "lat": course.latitude,
        "lng": course.longitude,
        "country": course.country,
        "state": course.state,
        "rating": course.rating,
        "timesPlayed": course.times_played,
        "lastPlayed": _iso(course.last_played),
        "addedById": course.added_by_id,
        "addedOn": _iso(course.added_on),
    })


# ================================================================
# Round
# ================================================================

def round_from_doc(round_id: str, doc: Dict[str, Any]) -> Round:
    """users/{uid}/rounds/{id} document -> Round model."""
    return Round(
        id=round_id,
        user_id=doc.get("userId"),
        course_id=doc["courseId"],
        course_name=doc.get("courseName") or "",
        date=_to_date(doc["date"]),
        score=doc.get("score"),
        par=doc.get("par"),
        tees=doc.get("tees"),
        rating=doc.get("rating"),
        slope=doc.get("slope"),
        notes=doc.get("notes"),
        weather=doc.get("weather"),
        played_with=doc.get("playedWith") or [],
        photo_urls=doc.get("photoUrls") or [],
        created_at=_to_datetime(doc.get("createdAt")),
        updated_at=_to_datetime(doc.get("updatedAt")),
    )


def round_to_doc(round_obj: Round) -> Dict[str, Any]:
    """Round model -> document."""
    return _drop_none({
        "userId": round_obj.user_id,
        "courseId": round_obj.course_id,
        "courseName": round_obj.course_name,
        "date": _iso(round_obj.date),
        "score": round_obj.score,
        "par": round_obj.par,
        "tees": round_obj.tees,
        "rating": round_obj.rating,
        "slope": round_obj.slope,
        "notes": round_obj.notes,
        "weather": round_obj.weather,
        "playedWith": round_obj.played_with or None,
        "photoUrls": round_obj.photo_urls or None,
        "createdAt": _iso(round_obj.created_at),
        "updatedAt": _iso(round_obj.updated_at),
    })
