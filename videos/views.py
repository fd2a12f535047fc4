import logging

from rest_framework import exceptions, status, views
from rest_framework.response import Response

from .config import PipelineConfig
from .errors import (
    InvalidImage,
    InvalidReference,
    NormalizeError,
    PayloadTooLarge,
    PipelineError,
    ResolveError,
    UnsupportedMediaType,
    UploadError,
)
from .models import Video
from .pipeline import UploadRequest, VideoUploadPipeline
from .s3 import LocatorResolver
from .serializers import (
    ThumbnailUploadSerializer,
    VideoCreateSerializer,
    VideoSerializer,
    VideoUploadSerializer,
)
from .thumbnails import store_thumbnail
from .uploads import MaxBytesUploadHandler, declared_length

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    PayloadTooLarge: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    UnsupportedMediaType: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    InvalidImage: status.HTTP_400_BAD_REQUEST,
    NormalizeError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    UploadError: status.HTTP_502_BAD_GATEWAY,
    ResolveError: status.HTTP_502_BAD_GATEWAY,
    InvalidReference: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_config() -> PipelineConfig:
    return PipelineConfig.from_settings()


def get_pipeline() -> VideoUploadPipeline:
    return VideoUploadPipeline(get_config())


def get_resolver() -> LocatorResolver:
    return LocatorResolver(get_config())


def error_response(exc: PipelineError) -> Response:
    code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    body = {"detail": str(exc)}
    if isinstance(exc, NormalizeError):
        body["diagnostic"] = exc.diagnostic
    return Response(body, status=code)


def video_response(videos, *, many=False) -> Response:
    try:
        data = VideoSerializer(videos, many=many, context={"resolver": get_resolver()}).data
    except PipelineError as e:
        return error_response(e)
    return Response(data)


def load_video(request, video_id, *, owned=True):
    """Return (video, None) or (None, error Response)."""
    try:
        video = Video.objects.get(pk=video_id)
    except Video.DoesNotExist:
        return None, Response({"detail": "Video not found"}, status=status.HTTP_404_NOT_FOUND)
    if owned and video.owner_id != request.user.pk:
        return None, Response({"detail": "Not the owner of this video"}, status=status.HTTP_403_FORBIDDEN)
    return video, None


class VideoListCreateView(views.APIView):
    def get(self, request):
        return video_response(Video.objects.filter(owner=request.user), many=True)

    def post(self, request):
        ser = VideoCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        video = Video.objects.create(owner=request.user, **ser.validated_data)
        return Response(VideoSerializer(video, context={"resolver": None}).data, status=status.HTTP_201_CREATED)


class VideoDetailView(views.APIView):
    def get(self, request, video_id):
        video, err = load_video(request, video_id, owned=False)
        if err:
            return err
        return video_response(video)

    def delete(self, request, video_id):
        video, err = load_video(request, video_id)
        if err:
            return err
        video.delete()
        return Response({"status": "deleted"})


class RequestTooLarge(exceptions.APIException):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    default_detail = "Request body too large"
    default_code = "payload_too_large"


class UploadLimitMixin:
    """
    Caps multipart uploads before Django spools them to disk: a declared
    Content-Length over the limit is refused before authentication, and a
    body that runs past it while streaming aborts the parse.
    """

    def upload_limit(self, config: PipelineConfig) -> int:
        raise NotImplementedError

    def initialize_request(self, request, *args, **kwargs):
        self.max_body_bytes = self.upload_limit(get_config())
        self.upload_guard = MaxBytesUploadHandler(request, max_bytes=self.max_body_bytes)
        request.upload_handlers = [self.upload_guard, *request.upload_handlers]
        return super().initialize_request(request, *args, **kwargs)

    def initial(self, request, *args, **kwargs):
        length = declared_length(request)
        if length is not None and length > self.max_body_bytes:
            raise RequestTooLarge(str(PayloadTooLarge(self.max_body_bytes)))
        super().initial(request, *args, **kwargs)

    def upload_data(self, request):
        """request.data, or None if the body went past the limit mid-parse."""
        data = request.data
        if self.upload_guard.exceeded:
            return None
        return data


class VideoUploadView(UploadLimitMixin, views.APIView):
    """
    Accepts the multipart ``video`` field, runs the upload pipeline and
    records the stored object on the video. Responds with a freshly
    resolved ``video_url``.
    """

    def upload_limit(self, config):
        return config.max_upload_bytes

    def post(self, request, video_id):
        video, err = load_video(request, video_id)
        if err:
            return err

        data = self.upload_data(request)
        if data is None:
            return error_response(PayloadTooLarge(self.max_body_bytes))

        ser = VideoUploadSerializer(data=data)
        ser.is_valid(raise_exception=True)
        upload = ser.validated_data["video"]

        def commit(stored):
            video.video_object = stored.to_dict()
            video.save(update_fields=["video_object", "updated_at"])

        try:
            get_pipeline().run(
                UploadRequest(video_id=video.id, stream=upload, content_type=upload.content_type, filename=upload.name),
                commit,
            )
        except PipelineError as e:
            logger.warning("Upload for video %s failed: %s", video.id, e)
            return error_response(e)

        return video_response(video)


class ThumbnailUploadView(UploadLimitMixin, views.APIView):
    def upload_limit(self, config):
        return config.max_thumbnail_bytes

    def post(self, request, video_id):
        video, err = load_video(request, video_id)
        if err:
            return err

        data = self.upload_data(request)
        if data is None:
            return error_response(PayloadTooLarge(self.max_body_bytes))

        ser = ThumbnailUploadSerializer(data=data)
        ser.is_valid(raise_exception=True)
        upload = ser.validated_data["thumbnail"]

        try:
            url = store_thumbnail(upload, upload.content_type, get_config())
        except PipelineError as e:
            return error_response(e)

        video.thumbnail_url = url
        video.save(update_fields=["thumbnail_url", "updated_at"])
        return video_response(video)
