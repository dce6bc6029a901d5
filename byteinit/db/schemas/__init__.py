"""
Domain-split Pydantic schemas with a single import surface.

Callers write `from byteinit.db import schemas` and reference
`schemas.BlogCard` etc.
"""

# Import order: define base/simple types first to satisfy forward refs
from .users import (
    UserSummary,
    UserRegister,
    RegisterResponse,
    LoginRequest,
    LoginResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    ProfileUpdate,
    Profile,
    ReputationSummary,
    Me,
    FollowStats,
    FollowToggleResponse,
    AuthorSummary,
    ActivityItem,
)
from .tokens import SessionInfo
from .blogs import (
    BlogCreate,
    BlogUpdate,
    BlogCounts,
    BlogViewerState,
    BlogCard,
    BlogDetail,
    BlogListResponse,
    VoteRequest,
    VoteResponse,
    LikeToggleResponse,
    SaveToggleResponse,
    ViewResponse,
    ReactionToggleRequest,
    ReactionsResponse,
    ReactionToggleResponse,
    AuthorStats,
    BlogChartPoint,
    HistoryEntry,
    FeaturedRefreshResponse,
)
from .comments import CommentCreate, CommentUpdate, Comment, CommentNode, CommentDeleteResponse
from .resources import (
    ResourceCreate,
    ResourceUpdate,
    ResourceCounts,
    Resource,
    ResourceListResponse,
    ResourceLikeResponse,
    ResourceLikeState,
    ResourceViewResponse,
    SaveResourceRequest,
    SavedResourceItem,
    SavedResourceStats,
    ResourceChartPoint,
    TagCount,
)
from .notifications import (
    UserNotificationPreferenceUpdate,
    UserNotificationPreference,
    Notification,
    NotificationListResponse,
    MarkReadRequest,
    NotificationBulkResult,
    NotificationPreferencesResponse,
    NotificationStatsResponse,
)
from .search import SearchResponse, TrendingSearch
from .profiles import PublicProfile, GeneratedProfile, PortfolioResponse, UploadResponse
from .support import ContactRequest, ContactResponse

__all__ = [
    # Users
    "UserSummary",
    "UserRegister",
    "RegisterResponse",
    "LoginRequest",
    "LoginResponse",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "ProfileUpdate",
    "Profile",
    "ReputationSummary",
    "Me",
    "FollowStats",
    "FollowToggleResponse",
    "AuthorSummary",
    "ActivityItem",
    "SessionInfo",
    # Blog
    "BlogCreate",
    "BlogUpdate",
    "BlogCounts",
    "BlogViewerState",
    "BlogCard",
    "BlogDetail",
    "BlogListResponse",
    "VoteRequest",
    "VoteResponse",
    "LikeToggleResponse",
    "SaveToggleResponse",
    "ViewResponse",
    "ReactionToggleRequest",
    "ReactionsResponse",
    "ReactionToggleResponse",
    "AuthorStats",
    "BlogChartPoint",
    "HistoryEntry",
    "FeaturedRefreshResponse",
    # Comments
    "CommentCreate",
    "CommentUpdate",
    "Comment",
    "CommentNode",
    "CommentDeleteResponse",
    # Resources
    "ResourceCreate",
    "ResourceUpdate",
    "ResourceCounts",
    "Resource",
    "ResourceListResponse",
    "ResourceLikeResponse",
    "ResourceLikeState",
    "ResourceViewResponse",
    "SaveResourceRequest",
    "SavedResourceItem",
    "SavedResourceStats",
    "ResourceChartPoint",
    "TagCount",
    # Notifications
    "UserNotificationPreferenceUpdate",
    "UserNotificationPreference",
    "Notification",
    "NotificationListResponse",
    "MarkReadRequest",
    "NotificationBulkResult",
    "NotificationPreferencesResponse",
    "NotificationStatsResponse",
    # Search / profiles / support
    "SearchResponse",
    "TrendingSearch",
    "PublicProfile",
    "GeneratedProfile",
    "PortfolioResponse",
    "UploadResponse",
    "ContactRequest",
    "ContactResponse",
]
