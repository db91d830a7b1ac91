"""Tests for the module catalog and tenant enablement."""
import pytest


class TestCatalog:
    """Bootstrap catalog."""
    
    def test_ensure_catalog_is_idempotent(self, db_session):
        from app.models.module import Module
        from app.services.modules import MODULE_CATALOG, ModuleService
        
        service = ModuleService(db_session)
        service.ensure_catalog()
        service.ensure_catalog()
        
        assert db_session.query(Module).count() == len(MODULE_CATALOG)
    
    def test_list_modules_in_display_order(self, db_session, modules):
        from app.services.modules import ModuleService
        
        orders = [m.order for m in ModuleService(db_session).list_modules()]
        assert orders == sorted(orders)
    
    def test_get_unknown_module(self, db_session, modules):
        import uuid
        from app.errors import NotFound
        from app.services.modules import ModuleService
        
        with pytest.raises(NotFound):
            ModuleService(db_session).get_module(uuid.uuid4())


class TestEnable:
    """Idempotent upsert of enablements."""
    
    def test_enable_twice_keeps_one_row_with_latest_values(self, db_session, modules, acme, master, ctx_for):
        from app.models.module import ModuleEnablement, ModuleType, PermissionLevel
        from app.services.modules import ModuleService
        
        service = ModuleService(db_session)
        module_id = modules[ModuleType.SALES].id
        service.enable(ctx_for(master), acme.id, module_id, default_level=PermissionLevel.READ)
        service.enable(ctx_for(master), acme.id, module_id, default_level=PermissionLevel.WRITE)
        
        rows = db_session.query(ModuleEnablement).filter(
            ModuleEnablement.tenant_id == acme.id,
            ModuleEnablement.module_id == module_id,
        ).all()
        assert len(rows) == 1
        assert rows[0].default_level == PermissionLevel.WRITE
        assert rows[0].deleted_at is None
    
    def test_enable_restores_soft_deleted_enablement(self, db_session, modules, acme, master, ctx_for, acme_financial):
        from app.models.module import ModuleType, PermissionLevel
        from app.services.modules import ModuleService
        
        service = ModuleService(db_session)
        module_id = modules[ModuleType.FINANCIAL].id
        service.disable(ctx_for(master), acme.id, module_id)
        restored = service.enable(ctx_for(master), acme.id, module_id, default_level=PermissionLevel.WRITE)
        
        assert restored.id == acme_financial.id
        assert restored.is_enabled is True
        assert restored.deleted_at is None
        assert restored.default_level == PermissionLevel.WRITE
    
    def test_only_master_may_enable(self, db_session, modules, acme, acme_admin, ctx_for):
        from app.errors import Forbidden
        from app.models.module import ModuleType
        from app.services.modules import ModuleService
        
        with pytest.raises(Forbidden) as exc:
            ModuleService(db_session).enable(ctx_for(acme_admin), acme.id, modules[ModuleType.SALES].id)
        assert exc.value.subsystem == "module_admin"
    
    def test_enable_requires_live_tenant_and_module(self, db_session, modules, acme, master, ctx_for):
        import uuid
        from app.errors import NotFound
        from app.models.module import ModuleType
        from app.services.modules import ModuleService
        
        service = ModuleService(db_session)
        with pytest.raises(NotFound):
            service.enable(ctx_for(master), uuid.uuid4(), modules[ModuleType.SALES].id)
        with pytest.raises(NotFound):
            service.enable(ctx_for(master), acme.id, uuid.uuid4())
        
        acme.soft_delete()
        db_session.commit()
        with pytest.raises(NotFound):
            service.enable(ctx_for(master), acme.id, modules[ModuleType.SALES].id)
    
    def test_update_changes_fields_in_place(self, db_session, modules, acme, master, ctx_for, acme_financial):
        from app.models.module import ModuleType, PermissionLevel
        from app.services.modules import ModuleService
        
        updated = ModuleService(db_session).update(
            ctx_for(master), acme.id, modules[ModuleType.FINANCIAL].id, default_level=PermissionLevel.ADMIN
        )
        assert updated.id == acme_financial.id
        assert updated.default_level == PermissionLevel.ADMIN
        assert updated.is_enabled is True


class TestDisable:
    """Disable cascades to overrides in one unit of work."""
    
    def test_disable_resets_and_retires_overrides(
        self, db_session, modules, acme, master, acme_client, ctx_for, acme_financial
    ):
        from app.models.module import ModuleEnablement, ModuleType, PermissionLevel, PermissionOverride
        from app.services.modules import ModuleService
        from app.services.overrides import OverrideService
        
        override = OverrideService(db_session).assign(
            ctx_for(master), acme_client.id, acme_financial.id, PermissionLevel.WRITE
        )
        ModuleService(db_session).disable(ctx_for(master), acme.id, modules[ModuleType.FINANCIAL].id)
        
        row = db_session.get(PermissionOverride, override.id)
        assert row.level == PermissionLevel.NONE
        assert row.deleted_at is not None
        enablement = db_session.get(ModuleEnablement, acme_financial.id)
        assert enablement.is_enabled is False
        assert enablement.deleted_at is not None
    
    def test_reenable_does_not_revive_overrides(
        self, db_session, modules, acme, master, acme_client, ctx_for, acme_financial
    ):
        from app.models.module import ModuleType, PermissionLevel, PermissionOverride
        from app.services.modules import ModuleService
        from app.services.overrides import OverrideService
        
        service = ModuleService(db_session)
        module_id = modules[ModuleType.FINANCIAL].id
        override = OverrideService(db_session).assign(
            ctx_for(master), acme_client.id, acme_financial.id, PermissionLevel.ADMIN
        )
        service.disable(ctx_for(master), acme.id, module_id)
        service.enable(ctx_for(master), acme.id, module_id, default_level=PermissionLevel.READ)
        
        row = db_session.get(PermissionOverride, override.id)
        assert row.level == PermissionLevel.NONE
        assert row.deleted_at is not None
    
    def test_disable_without_live_enablement(self, db_session, modules, acme, master, ctx_for, acme_financial):
        from app.errors import NotFound
        from app.models.module import ModuleType
        from app.services.modules import ModuleService
        
        service = ModuleService(db_session)
        module_id = modules[ModuleType.FINANCIAL].id
        service.disable(ctx_for(master), acme.id, module_id)
        with pytest.raises(NotFound):
            service.disable(ctx_for(master), acme.id, module_id)
    
    def test_failed_cascade_rolls_back(
        self, db_session, modules, acme, master, acme_client, ctx_for, acme_financial, monkeypatch
    ):
        """A failure in any step leaves every row as it was."""
        from app.database import run_atomically
        from app.models.module import ModuleEnablement, ModuleType, PermissionLevel, PermissionOverride
        from app.services import modules as modules_service
        from app.services.overrides import OverrideService
        
        override = OverrideService(db_session).assign(
            ctx_for(master), acme_client.id, acme_financial.id, PermissionLevel.WRITE
        )
        
        def failing_run(db, steps):
            def boom(session):
                raise RuntimeError("store unavailable")
            run_atomically(db, list(steps) + [("boom", boom)])
        
        monkeypatch.setattr(modules_service, "run_atomically", failing_run)
        with pytest.raises(RuntimeError):
            modules_service.ModuleService(db_session).disable(
                ctx_for(master), acme.id, modules[ModuleType.FINANCIAL].id
            )
        
        row = db_session.get(PermissionOverride, override.id)
        assert row.level == PermissionLevel.WRITE
        assert row.deleted_at is None
        assert db_session.get(ModuleEnablement, acme_financial.id).deleted_at is None


class TestListForTenant:
    """Who may list a tenant's modules."""
    
    def test_ordered_by_catalog(self, db_session, modules, acme, master, ctx_for):
        from app.models.module import ModuleType
        from app.services.modules import ModuleService
        
        service = ModuleService(db_session)
        for module_type in (ModuleType.SETTINGS, ModuleType.FINANCIAL, ModuleType.REPORTS):
            service.enable(ctx_for(master), acme.id, modules[module_type].id)
        
        listed = [e.module.type for e in service.list_for_tenant(ctx_for(master), acme.id)]
        assert listed == [ModuleType.FINANCIAL, ModuleType.REPORTS, ModuleType.SETTINGS]
    
    def test_admin_sees_own_tenant_only(self, db_session, acme, globex, acme_admin, ctx_for, acme_financial):
        from app.errors import Forbidden
        from app.services.modules import ModuleService
        
        service = ModuleService(db_session)
        assert [e.id for e in service.list_for_tenant(ctx_for(acme_admin), acme.id)] == [acme_financial.id]
        with pytest.raises(Forbidden):
            service.list_for_tenant(ctx_for(acme_admin), globex.id)
    
    def test_manager_may_not_list(self, db_session, acme, acme_manager, ctx_for):
        from app.errors import Forbidden
        from app.services.modules import ModuleService
        
        with pytest.raises(Forbidden):
            ModuleService(db_session).list_for_tenant(ctx_for(acme_manager), acme.id)


class TestResolveDefault:
    """Fallback level lookup."""
    
    def test_resolve_default(self, db_session, modules, acme, master, ctx_for, acme_financial):
        from app.models.module import ModuleType, PermissionLevel
        from app.services.modules import ModuleService
        
        service = ModuleService(db_session)
        assert service.resolve_default(acme.id, ModuleType.FINANCIAL) == PermissionLevel.READ
        assert service.resolve_default(acme.id, ModuleType.SALES) is None
        assert service.resolve_default(None, ModuleType.FINANCIAL) is None
    
    def test_disabled_flag_means_not_enabled(self, db_session, modules, acme, master, ctx_for, acme_financial):
        from app.models.module import ModuleType
        from app.services.modules import ModuleService
        
        service = ModuleService(db_session)
        service.update(ctx_for(master), acme.id, modules[ModuleType.FINANCIAL].id, enabled=False)
        assert service.resolve_default(acme.id, ModuleType.FINANCIAL) is None


class TestConcurrentEnable:
    """A losing insert falls back to updating the winner's row."""
    
    def test_losing_insert_updates_winner(self, db_session, modules, acme, master, ctx_for, monkeypatch):
        from sqlalchemy.orm import Session
        from app.models.module import ModuleEnablement, ModuleType, PermissionLevel
        from app.services.modules import ModuleService
        
        real_find_pair = ModuleService._find_pair
        raced = []
        
        def find_pair_while_another_writer_wins(self, tenant_id, module_id):
            if not raced:
                raced.append(True)
                with Session(bind=db_session.get_bind()) as other:
                    other.add(ModuleEnablement(
                        tenant_id=tenant_id,
                        module_id=module_id,
                        is_enabled=True,
                        default_level=PermissionLevel.READ,
                    ))
                    other.commit()
                return None
            return real_find_pair(self, tenant_id, module_id)
        
        monkeypatch.setattr(ModuleService, "_find_pair", find_pair_while_another_writer_wins)
        module_id = modules[ModuleType.SALES].id
        result = ModuleService(db_session).enable(
            ctx_for(master), acme.id, module_id, default_level=PermissionLevel.WRITE
        )
        
        rows = db_session.query(ModuleEnablement).filter(
            ModuleEnablement.tenant_id == acme.id,
            ModuleEnablement.module_id == module_id,
        ).all()
        assert raced == [True]
        assert len(rows) == 1
        assert rows[0].id == result.id
        assert rows[0].default_level == PermissionLevel.WRITE
