from rest_framework import serializers

from .hierarchy import RELATION_FIELDS
from .models import Designation
from .services import format_salary_range, summarize


class DesignationListSerializer(serializers.ModelSerializer):
    """Serializer for designation lists"""
    parent_id = serializers.UUIDField(read_only=True)
    reporting_to_id = serializers.UUIDField(read_only=True)
    salary_range = serializers.SerializerMethodField()

    class Meta:
        model = Designation
        fields = [
            'id', 'name', 'code', 'department', 'level', 'sort_order',
            'parent_id', 'reporting_to_id', 'min_salary', 'max_salary',
            'salary_range', 'is_active',
        ]

    def get_salary_range(self, obj):
        return format_salary_range(obj.min_salary, obj.max_salary)


class DesignationSerializer(serializers.ModelSerializer):
    """
    Full serializer for designation details and writes.

    Field validation only; hierarchy checks and normalisation happen in
    DesignationService, which the viewset calls instead of save().
    """
    parent_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    reporting_to_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    code = serializers.CharField(max_length=50, required=False, allow_blank=True)
    level = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    department = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    responsibilities = serializers.ListField(
        child=serializers.CharField(allow_blank=True), required=False
    )
    requirements = serializers.ListField(
        child=serializers.CharField(allow_blank=True), required=False
    )
    salary_range = serializers.SerializerMethodField()
    created_by_name = serializers.SerializerMethodField()
    updated_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Designation
        fields = [
            'id', 'name', 'code', 'description',
            'parent_id', 'reporting_to_id',
            'level', 'sort_order', 'department',
            'min_salary', 'max_salary', 'salary_range',
            'responsibilities', 'requirements', 'is_active',
            'created_by', 'created_by_name',
            'updated_by', 'updated_by_name',
            'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'created_at', 'updated_at',
            'created_by', 'updated_by',
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        for field in RELATION_FIELDS.values():
            value = getattr(instance, field)
            data[field] = str(value) if value else None
        return data

    def get_salary_range(self, obj):
        return format_salary_range(obj.min_salary, obj.max_salary)

    def get_created_by_name(self, obj):
        if obj.created_by:
            return obj.created_by.get_full_name() or obj.created_by.get_username()
        return None

    def get_updated_by_name(self, obj):
        if obj.updated_by:
            return obj.updated_by.get_full_name() or obj.updated_by.get_username()
        return None


class DesignationDetailSerializer(DesignationSerializer):
    """Designation with its parent, reporting manager and active children"""
    parent = serializers.SerializerMethodField()
    reporting_to = serializers.SerializerMethodField()
    children = serializers.SerializerMethodField()

    class Meta(DesignationSerializer.Meta):
        fields = DesignationSerializer.Meta.fields + ['parent', 'reporting_to', 'children']

    def _details(self):
        return self.context.get('details') or {}

    def get_parent(self, obj):
        return summarize(self._details().get('parent'))

    def get_reporting_to(self, obj):
        return summarize(self._details().get('reporting_to'))

    def get_children(self, obj):
        return [summarize(child) for child in self._details().get('children', [])]


class CircularCheckSerializer(serializers.Serializer):
    candidate_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    relation = serializers.ChoiceField(choices=sorted(RELATION_FIELDS), default='parent')
