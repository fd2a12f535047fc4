from django.urls import path

from .views import ThumbnailUploadView, VideoDetailView, VideoListCreateView, VideoUploadView

urlpatterns = [
    path("videos/", VideoListCreateView.as_view(), name="videos"),
    path("videos/<uuid:video_id>/", VideoDetailView.as_view(), name="video_detail"),
    path("videos/<uuid:video_id>/video/", VideoUploadView.as_view(), name="video_upload"),
    path("videos/<uuid:video_id>/thumbnail/", ThumbnailUploadView.as_view(), name="thumbnail_upload"),
]
