"""
Query filters for group media listings.
"""
import django_filters

from apps.media.models import GroupMedia


class GroupMediaFilter(django_filters.FilterSet):
    """
    ?mediaType=image|video&uploadedBy=<user id>&dateFrom=<iso>&dateTo=<iso>
    """
    mediaType = django_filters.ChoiceFilter(
        field_name='media_type',
        choices=GroupMedia.MediaType.choices,
    )
    uploadedBy = django_filters.UUIDFilter(field_name='uploaded_by_id')
    dateFrom = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='gte')
    dateTo = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='lte')

    class Meta:
        model = GroupMedia
        fields = ['mediaType', 'uploadedBy', 'dateFrom', 'dateTo']
