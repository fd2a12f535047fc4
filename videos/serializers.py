from rest_framework import serializers

from .models import Video
from .s3 import StorageObject


class VideoSerializer(serializers.ModelSerializer):
    """
    Read representation. ``video_url`` is resolved per request from the stored
    object reference; pass the resolver in the serializer context.
    """
    owner_id = serializers.ReadOnlyField()
    video_url = serializers.SerializerMethodField()

    class Meta:
        model = Video
        fields = [
            "id",
            "owner_id",
            "title",
            "description",
            "thumbnail_url",
            "video_url",
            "created_at",
            "updated_at",
        ]

    def get_video_url(self, video):
        if not video.video_object:
            return None
        return self.context["resolver"].resolve(StorageObject.from_dict(video.video_object))


class VideoCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")


class VideoUploadSerializer(serializers.Serializer):
    video = serializers.FileField()


class ThumbnailUploadSerializer(serializers.Serializer):
    thumbnail = serializers.FileField()
