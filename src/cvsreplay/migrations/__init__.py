"""SQL schema migrations, applied in version order by cvsreplay.migration."""
