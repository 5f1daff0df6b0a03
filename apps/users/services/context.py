from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Client details recorded next to tokens and audit entries."""
    ip_address: str | None = None
    user_agent: str = ''

    @classmethod
    def from_request(cls, request):
        forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
        ip_address = forwarded.split(',')[0].strip() if forwarded else request.META.get('REMOTE_ADDR')
        return cls(
            ip_address=ip_address or None,
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
        )
