from rest_framework import serializers


class AddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    zipCode = serializers.CharField(max_length=20, required=False, allow_blank=True)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)


class CenterSerializer(serializers.Serializer):
    """Writable center fields; ``rating`` and ``totalReviews`` are derived and never accepted."""
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    address = AddressSerializer(required=False)
    phone = serializers.CharField(max_length=32)
    email = serializers.EmailField()
    operatingHours = serializers.DictField(required=False)
    services = serializers.ListField(child=serializers.CharField(max_length=100), required=False)
    adminId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    isActive = serializers.BooleanField(required=False)

    FIELD_MAP = {
        'name': 'name',
        'description': 'description',
        'address': 'address',
        'phone': 'phone',
        'email': 'email',
        'operatingHours': 'operating_hours',
        'services': 'services',
        'adminId': 'admin_id',
        'isActive': 'is_active',
    }

    def to_model_fields(self) -> dict:
        return {self.FIELD_MAP[k]: v for k, v in self.validated_data.items() if k in self.FIELD_MAP}


class DiagnosticTestSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)
    duration = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    preparationInstructions = serializers.CharField(required=False, allow_blank=True)
    requirements = serializers.ListField(child=serializers.CharField(max_length=255), required=False)
    isActive = serializers.BooleanField(required=False)

    FIELD_MAP = {
        'name': 'name',
        'description': 'description',
        'category': 'category',
        'price': 'price',
        'duration': 'duration',
        'preparationInstructions': 'preparation_instructions',
        'requirements': 'requirements',
        'isActive': 'is_active',
    }

    def to_model_fields(self) -> dict:
        return {self.FIELD_MAP[k]: v for k, v in self.validated_data.items() if k in self.FIELD_MAP}
