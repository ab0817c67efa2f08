from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field

from app.planner.session import SuggestionState
from match_engine.contracts import CourseRecord, MatchResult


class Profile(BaseModel):
    uid: str
    username: str
    email: Optional[str] = None
    courses: List[CourseRecord] = Field(default_factory=list)
    csvFileName: Optional[str] = None
    csvUrl: Optional[str] = None
    origin: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    passwordHash: Optional[str] = Field(default=None, exclude=True)

    @property
    def key(self) -> str:
        return self.username or self.email or self.uid


class RegisterIn(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)
    username: Optional[str] = None


class RegisterOut(BaseModel):
    uid: str
    email: Optional[str]
    username: str
    isNew: bool
    message: str


class RowStatus(BaseModel):
    row: int
    ok: bool
    issues: List[str]


class ScheduleUploadOut(BaseModel):
    username: str
    csvFileName: Optional[str]
    courses: List[CourseRecord]
    status: List[RowStatus]


class FriendIn(BaseModel):
    friendUsername: str = Field(min_length=1)
    sharedCourses: Optional[List[Dict[str, Any]]] = None


class FriendsOut(BaseModel):
    username: str
    friends: List[str]


class SuggestionRequestIn(BaseModel):
    activeFriend: Optional[str] = None
    sharedCourses: List[Dict[str, Any]] = Field(default_factory=list)
    origin: Optional[str] = None


class OriginIn(BaseModel):
    origin: str = Field(min_length=1)


class MatchOut(MatchResult):
    isFriend: bool = False


class FriendConfirmOut(BaseModel):
    username: str
    friends: List[str]
    suggestions: SuggestionState
