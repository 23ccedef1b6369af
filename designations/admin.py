from django import forms
from django.contrib import admin

from .hierarchy import PARENT, REPORTING_TO
from .models import Designation
from .services import DesignationService, format_salary_range


class DesignationAdminForm(forms.ModelForm):
    """Rejects parent / reporting_to changes that would close a loop"""

    class Meta:
        model = Designation
        fields = '__all__'

    def clean(self):
        cleaned_data = super().clean()
        if self.instance._state.adding:
            return cleaned_data
        service = DesignationService()
        for field, relation in (('parent', PARENT), ('reporting_to', REPORTING_TO)):
            target = cleaned_data.get(field)
            if field not in self.changed_data or target is None:
                continue
            if service.check_circular_reference(self.instance.pk, target.pk, relation):
                self.add_error(field, f"{target} cannot be used here, it would create a circular hierarchy.")
        return cleaned_data


@admin.register(Designation)
class DesignationAdmin(admin.ModelAdmin):
    form = DesignationAdminForm
    list_display = ('name', 'code', 'department', 'level', 'parent', 'reporting_to', 'salary_range', 'is_active')
    list_filter = ('is_active', 'level', 'department')
    search_fields = ('name', 'code', 'description')
    readonly_fields = ('id', 'created_at', 'updated_at', 'created_by', 'updated_by')
    raw_id_fields = ('parent', 'reporting_to')
    actions = ['deactivate_designations']

    fieldsets = (
        ('Basic Information', {
            'fields': ('id', 'name', 'code', 'description', 'department')
        }),
        ('Hierarchy', {
            'fields': ('parent', 'reporting_to', 'level', 'sort_order')
        }),
        ('Compensation', {
            'fields': ('min_salary', 'max_salary')
        }),
        ('Role Profile', {
            'fields': ('responsibilities', 'requirements'),
            'classes': ('collapse',)
        }),
        ('Status', {
            'fields': ('is_active',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'created_by', 'updated_by'),
            'classes': ('collapse',)
        }),
    )

    @admin.display(description='Salary range')
    def salary_range(self, obj):
        return format_salary_range(obj.min_salary, obj.max_salary)

    def save_model(self, request, obj, form, change):
        """Route admin edits through the service so hierarchy checks apply"""
        service = DesignationService()
        if change:
            data = {field: form.cleaned_data.get(field) for field in form.changed_data}
            service.update(obj.pk, data, user=request.user)
        else:
            created = service.create(dict(form.cleaned_data), user=request.user)
            obj.pk = created.pk

    @admin.action(description='Deactivate selected designations')
    def deactivate_designations(self, request, queryset):
        service = DesignationService()
        count = 0
        for designation in queryset.filter(is_active=True):
            service.deactivate(designation.pk, user=request.user)
            count += 1
        self.message_user(request, f"{count} designation(s) deactivated.")
