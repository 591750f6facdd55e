"""User-facing strings for the supported CLI languages.

Values are ``str.format`` templates. All locales must define the same keys.
``confirm_yes`` and ``update_yes`` are the single keystrokes accepted as
answers to the delete and update prompts.
"""

import os
from datetime import date

LOCALE_STRINGS = {
    "de": {
        "confirm_yes": "j",
        "update_yes": "u",
        "weekday_short": ["Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"],
        # Navigation & session
        "navigating_to_portal": "Öffne Abacus-Portal...",
        "captcha_detected": "FortiADC-Captcha erkannt. Öffne sichtbares Browserfenster...",
        "captcha_solve": "Bitte das Captcha im Browserfenster lösen.",
        "captcha_waiting": "Warte auf das Portal...",
        "captcha_retry": "Captcha gelöst. Starte Vorgang neu...",
        "opening_time_tracking": "Öffne Menü Rapportierung...",
        "opening_services": "Öffne Leistungen...",
        "opening_weekly_report": "Öffne Wochenrapport...",
        "login_start": "Starte Browser für die Anmeldung: {url}",
        "login_instructions": "Bitte im Browserfenster anmelden. Das Fenster schliesst sich nach erkannter Anmeldung.",
        "login_detected": "Anmeldung erkannt.",
        "login_timeout": "Anmeldung nicht automatisch erkannt. Falls angemeldet, Enter drücken um die Sitzung zu speichern.",
        "session_saved": "Sitzung gespeichert: {path}",
        "session_refreshed": "Sitzung erfolgreich erneuert",
        "session_refresh_failed": "Sitzung abgelaufen - 'abacus login' ausführen",
        "session_busy_skip": "Eine andere Sitzung läuft, Erneuerung übersprungen",
        # Filters
        "setting_view_month": "Ansicht auf Monat setzen...",
        "setting_view_week": "Ansicht auf Woche setzen...",
        "setting_date": "Datum auf {date} setzen...",
        # Grid
        "reading_entries": "Lese Einträge...",
        "reading_existing_entries": "Lese vorhandene Einträge...",
        "no_entries_found": "Keine Einträge gefunden.",
        "entries_total": "{count} Einträge total.",
        "listing_entries": "Einträge für {month}...",
        # Status
        "reading_time_report": "Lese Wochenrapport...",
        "time_report_not_found": "Wochenrapport nicht gefunden.",
        "status_week_header": "Woche {week:02d} · {start} – {end}",
        "status_worked": "Gearbeitet",
        "status_remaining": "Verbleibend",
        "status_missing_days": "Fehlende Tage",
        "status_balances_header": "Salden",
        "status_overtime": "Überstunden",
        "status_extra_time": "Überzeit",
        "status_vacation_header": "Ferien",
        "status_vacation_remaining": "Restguthaben",
        "status_vacation_planned": "Geplant bis 31.12.",
        "hours_unit": "Std.",
        "days_unit": "T",
        "hint_quick_actions": "Schnellaktionen",
        "hint_log_single": "Einen Tag buchen:",
        "hint_batch_fill": "Alle fehlenden Tage auf einmal buchen:",
        "hint_batch_generate": "Vorlage erzeugen und pro Tag anpassen:",
        # Table headers
        "header_date": "Datum",
        "header_project": "Projekt",
        "header_service_type": "Leistungsart",
        "header_hours": "Stunden",
        "header_text": "Text",
        "header_status": "Status",
        # Form
        "setting_date_field": "Datum: {date}",
        "setting_project": "Projekt: {project}",
        "setting_service_type": "Leistungsart: {service_type}",
        "setting_hours": "Stunden: {hours}",
        "setting_description": "Buchungstext: {text}",
        "time_entry_label": "Zeiteintrag:",
        # Log
        "already_booked": "{hours} bereits gebucht am {date} für Projekt {project}",
        "service_type_label": "Leistungsart",
        "text_label": "Text",
        "prompt_update_or_new": "Bestehenden aktualisieren oder neu erfassen? [u/n] ",
        "opening_existing_entry": "Öffne bestehenden Eintrag...",
        "creating_new_entry": "Erfasse neuen Eintrag...",
        "no_existing_entry_creating": "Kein bestehender Eintrag, erfasse neu...",
        "semi_manual_save": "Formular ausgefüllt. Im Browser speichern, dann hier Enter drücken.",
        # Save
        "saving": "Speichere...",
        "saved": "Gespeichert.",
        # Delete
        "no_entry_found": "Kein Eintrag am {date} für Projekt {project}.",
        "found_entry": "Gefunden: {hours} am {date} — {project}",
        "prompt_confirm_delete": "Wirklich löschen? [j/n] ",
        "cancelled": "Abgebrochen.",
        "multiple_entries_found": "{count} Einträge am {date} für Projekt {project}:",
        "no_text": "(kein Text)",
        "prompt_which_delete": "Welchen löschen? [1-{count} / a=alle / n=abbrechen] ",
        "deleting_entry": "Lösche Eintrag {current}/{total}...",
        "entry_deleted": "Eintrag gelöscht.",
        "entries_deleted": "{count} Einträge gelöscht.",
        "invalid_selection": "Ungültige Auswahl. Abgebrochen.",
        "deleting_entry_for": "Lösche Eintrag für {date} / {project}...",
        "select_entries_to_delete": "Einträge zum Löschen wählen (Nummern mit Komma, a=alle, leer=abbrechen):",
        "no_entries_selected": "Keine Einträge gewählt.",
        # List
        "missing_day_row": "Keine Einträge",
        "missing_days_summary": "{count} Arbeitstag(e) ohne Einträge.",
        # Batch
        "batch_creating": "[{current}/{total}] Erfasse Eintrag für {date}...",
        "batch_skipping": "Übersprungen: {date} — {project} (existiert bereits)",
        "batch_summary": "{created} Einträge erfasst, {skipped} übersprungen.",
        "batch_header": "Batch: {count} Einträge",
        "batch_dry_run": "Vorschau (Testlauf):",
        "batch_no_entries": "Keine Einträge zu erfassen.",
        "batch_weekend_skipped": "Übersprungen: {date} (Wochenende)",
        "batch_generated": "{path} mit {count} fehlenden Tagen erzeugt.",
        "batch_generate_hint": "Datei bearbeiten, dann: abacus time batch --file {path}",
        "dry_run_new": "+ neu",
        "dry_run_existing": "vorhanden",
        "dry_run_summary": "{new} neu, {skipped} übersprungen (Duplikat), {existing} vorhanden.",
        # Summary / check
        "summary_line1": "Woche {week} · {worked} / {target}h · {remaining}h offen{missing}",
        "summary_missing": " · {days} fehlen",
        "summary_line2": "Überstunden: {overtime}h ({overtime_days}T) · Ferien: {vacation_days}T übrig",
        "summary_updated_ago": "(aktualisiert vor {ago})",
        "check_warning": "Abacus: {days} nicht gebucht",
        "check_reminder": "Stunden diese Woche gebucht? Prüfen mit: abacus summary",
        "updating_cache": "Aktualisiere Status-Cache...",
        "default_booking_text": "Entwicklung",
    },
    "en": {
        "confirm_yes": "y",
        "update_yes": "u",
        "weekday_short": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
        # Navigation & session
        "navigating_to_portal": "Navigating to Abacus portal...",
        "captcha_detected": "FortiADC captcha detected. Reopening in headed mode...",
        "captcha_solve": "Please solve the captcha in the browser window.",
        "captcha_waiting": "Waiting for portal to load...",
        "captcha_retry": "Captcha solved. Retrying...",
        "opening_time_tracking": "Opening time tracking menu...",
        "opening_services": "Opening Services...",
        "opening_weekly_report": "Opening weekly report...",
        "login_start": "Starting browser for login: {url}",
        "login_instructions": "Please log in manually in the browser window. It closes once login is detected.",
        "login_detected": "Login detected.",
        "login_timeout": "Auto-detection timed out. If you are logged in, press Enter to save the session.",
        "session_saved": "Session saved to {path}",
        "session_refreshed": "Session refreshed successfully",
        "session_refresh_failed": "Session expired - run 'abacus login'",
        "session_busy_skip": "Another session is running, refresh skipped",
        # Filters
        "setting_view_month": "Setting view to Month...",
        "setting_view_week": "Setting view to Week...",
        "setting_date": "Setting date to {date}...",
        # Grid
        "reading_entries": "Reading entries...",
        "reading_existing_entries": "Reading existing entries...",
        "no_entries_found": "No entries found.",
        "entries_total": "{count} entries total.",
        "listing_entries": "Listing entries for {month}...",
        # Status
        "reading_time_report": "Reading time report...",
        "time_report_not_found": "Time report not found.",
        "status_week_header": "Week {week:02d} · {start} – {end}",
        "status_worked": "Worked",
        "status_remaining": "Remaining",
        "status_missing_days": "Missing days",
        "status_balances_header": "Balances",
        "status_overtime": "Overtime",
        "status_extra_time": "Extra time",
        "status_vacation_header": "Vacation",
        "status_vacation_remaining": "Remaining",
        "status_vacation_planned": "Planned by Dec 31",
        "hours_unit": "hours",
        "days_unit": "d",
        "hint_quick_actions": "Quick actions",
        "hint_log_single": "Book a single day:",
        "hint_batch_fill": "Book all missing days at once:",
        "hint_batch_generate": "Generate template & customize per day:",
        # Table headers
        "header_date": "Date",
        "header_project": "Project",
        "header_service_type": "Service Type",
        "header_hours": "Hours",
        "header_text": "Text",
        "header_status": "Status",
        # Form
        "setting_date_field": "Setting date: {date}",
        "setting_project": "Setting project: {project}",
        "setting_service_type": "Setting service type: {service_type}",
        "setting_hours": "Setting hours: {hours}",
        "setting_description": "Setting description: {text}",
        "time_entry_label": "Time entry:",
        # Log
        "already_booked": "{hours} already booked on {date} for project {project}",
        "service_type_label": "Service Type",
        "text_label": "Text",
        "prompt_update_or_new": "Update existing or add new? [u/n] ",
        "opening_existing_entry": "Opening existing entry for editing...",
        "creating_new_entry": "Creating new entry...",
        "no_existing_entry_creating": "No existing entry found, creating new...",
        "semi_manual_save": "Form filled. Save manually in the browser, then press Enter here.",
        # Save
        "saving": "Saving...",
        "saved": "Saved.",
        # Delete
        "no_entry_found": "No entry found on {date} for project {project}.",
        "found_entry": "Found: {hours} on {date} — {project}",
        "prompt_confirm_delete": "Really delete? [y/n] ",
        "cancelled": "Cancelled.",
        "multiple_entries_found": "{count} entries found on {date} for project {project}:",
        "no_text": "(no text)",
        "prompt_which_delete": "Which one to delete? [1-{count} / a=all / n=cancel] ",
        "deleting_entry": "Deleting entry {current}/{total}...",
        "entry_deleted": "Entry deleted.",
        "entries_deleted": "{count} entries deleted.",
        "invalid_selection": "Invalid selection. Cancelled.",
        "deleting_entry_for": "Deleting entry for {date} / {project}...",
        "select_entries_to_delete": "Select entries to delete (numbers separated by commas, a=all, empty=cancel):",
        "no_entries_selected": "No entries selected.",
        # List
        "missing_day_row": "No entries",
        "missing_days_summary": "{count} workday(s) without entries.",
        # Batch
        "batch_creating": "[{current}/{total}] Creating entry for {date}...",
        "batch_skipping": "Skipped: {date} — {project} (already exists)",
        "batch_summary": "{created} entries created, {skipped} skipped.",
        "batch_header": "Batch: {count} entries",
        "batch_dry_run": "Preview (dry-run):",
        "batch_no_entries": "No entries to create.",
        "batch_weekend_skipped": "Skipped: {date} (weekend)",
        "batch_generated": "Generated {path} with {count} missing days.",
        "batch_generate_hint": "Edit the file, then run: abacus time batch --file {path}",
        "dry_run_new": "+ new",
        "dry_run_existing": "exists",
        "dry_run_summary": "{new} new, {skipped} skipped (duplicate), {existing} existing.",
        # Summary / check
        "summary_line1": "Week {week} · {worked} / {target}h · {remaining}h remaining{missing}",
        "summary_missing": " · {days} missing",
        "summary_line2": "Overtime: {overtime}h ({overtime_days}d) · Vacation: {vacation_days}d left",
        "summary_updated_ago": "(updated {ago} ago)",
        "check_warning": "Abacus: {days} not logged",
        "check_reminder": "Did you log your hours this week? Check with: abacus summary",
        "updating_cache": "Updating status cache...",
        "default_booking_text": "Development",
    },
    "fr": {
        "confirm_yes": "o",
        "update_yes": "m",
        "weekday_short": ["lun.", "mar.", "mer.", "jeu.", "ven.", "sam.", "dim."],
        # Navigation & session
        "navigating_to_portal": "Navigation vers le portail Abacus...",
        "captcha_detected": "Captcha FortiADC détecté. Réouverture en mode visible...",
        "captcha_solve": "Veuillez résoudre le captcha dans la fenêtre du navigateur.",
        "captcha_waiting": "En attente du chargement du portail...",
        "captcha_retry": "Captcha résolu. Nouvelle tentative...",
        "opening_time_tracking": "Ouverture du menu de suivi du temps...",
        "opening_services": "Ouverture des Prestations...",
        "opening_weekly_report": "Ouverture du rapport hebdomadaire...",
        "login_start": "Démarrage du navigateur pour la connexion: {url}",
        "login_instructions": "Veuillez vous connecter dans la fenêtre du navigateur. Elle se ferme une fois la connexion détectée.",
        "login_detected": "Connexion détectée.",
        "login_timeout": "Connexion non détectée automatiquement. Si vous êtes connecté, appuyez sur Entrée pour enregistrer la session.",
        "session_saved": "Session enregistrée dans {path}",
        "session_refreshed": "Session renouvelée avec succès",
        "session_refresh_failed": "Session expirée - lancez 'abacus login'",
        "session_busy_skip": "Une autre session est en cours, renouvellement ignoré",
        # Filters
        "setting_view_month": "Réglage de la vue sur Mois...",
        "setting_view_week": "Réglage de la vue sur Semaine...",
        "setting_date": "Réglage de la date à {date}...",
        # Grid
        "reading_entries": "Lecture des entrées...",
        "reading_existing_entries": "Lecture des entrées existantes...",
        "no_entries_found": "Aucune entrée trouvée.",
        "entries_total": "{count} entrées au total.",
        "listing_entries": "Liste des entrées pour {month}...",
        # Status
        "reading_time_report": "Lecture du rapport horaire...",
        "time_report_not_found": "Rapport horaire introuvable.",
        "status_week_header": "Semaine {week:02d} · {start} – {end}",
        "status_worked": "Travaillé",
        "status_remaining": "Restant",
        "status_missing_days": "Jours manquants",
        "status_balances_header": "Soldes",
        "status_overtime": "Heures sup.",
        "status_extra_time": "Heures en plus",
        "status_vacation_header": "Vacances",
        "status_vacation_remaining": "Solde restant",
        "status_vacation_planned": "Prévu au 31 déc",
        "hours_unit": "heures",
        "days_unit": "j",
        "hint_quick_actions": "Actions rapides",
        "hint_log_single": "Réserver un seul jour :",
        "hint_batch_fill": "Réserver tous les jours manquants :",
        "hint_batch_generate": "Générer un modèle & personnaliser par jour :",
        # Table headers
        "header_date": "Date",
        "header_project": "Projet",
        "header_service_type": "Type de prestation",
        "header_hours": "Heures",
        "header_text": "Texte",
        "header_status": "Statut",
        # Form
        "setting_date_field": "Réglage de la date: {date}",
        "setting_project": "Réglage du projet: {project}",
        "setting_service_type": "Réglage du type de prestation: {service_type}",
        "setting_hours": "Réglage des heures: {hours}",
        "setting_description": "Réglage de la description: {text}",
        "time_entry_label": "Entrée horaire:",
        # Log
        "already_booked": "{hours} déjà réservé le {date} pour le projet {project}",
        "service_type_label": "Type de prestation",
        "text_label": "Texte",
        "prompt_update_or_new": "Mettre à jour l'existant ou en ajouter un nouveau? [m/n] ",
        "opening_existing_entry": "Ouverture de l'entrée existante...",
        "creating_new_entry": "Création d'une nouvelle entrée...",
        "no_existing_entry_creating": "Aucune entrée existante, création...",
        "semi_manual_save": "Formulaire rempli. Enregistrez dans le navigateur, puis appuyez sur Entrée ici.",
        # Save
        "saving": "Enregistrement...",
        "saved": "Enregistré.",
        # Delete
        "no_entry_found": "Aucune entrée trouvée le {date} pour le projet {project}.",
        "found_entry": "Trouvé: {hours} le {date} — {project}",
        "prompt_confirm_delete": "Vraiment supprimer? [o/n] ",
        "cancelled": "Annulé.",
        "multiple_entries_found": "{count} entrées trouvées le {date} pour le projet {project}:",
        "no_text": "(pas de texte)",
        "prompt_which_delete": "Lequel supprimer? [1-{count} / a=tous / n=annuler] ",
        "deleting_entry": "Suppression de l'entrée {current}/{total}...",
        "entry_deleted": "Entrée supprimée.",
        "entries_deleted": "{count} entrées supprimées.",
        "invalid_selection": "Sélection invalide. Annulé.",
        "deleting_entry_for": "Suppression de l'entrée pour {date} / {project}...",
        "select_entries_to_delete": "Sélectionner les entrées à supprimer (numéros séparés par des virgules, a=tous, vide=annuler):",
        "no_entries_selected": "Aucune entrée sélectionnée.",
        # List
        "missing_day_row": "Aucune entrée",
        "missing_days_summary": "{count} jour(s) ouvrable(s) sans entrées.",
        # Batch
        "batch_creating": "[{current}/{total}] Création de l'entrée pour {date}...",
        "batch_skipping": "Ignoré: {date} — {project} (existe déjà)",
        "batch_summary": "{created} entrées créées, {skipped} ignorées.",
        "batch_header": "Batch: {count} entrées",
        "batch_dry_run": "Aperçu (dry-run):",
        "batch_no_entries": "Aucune entrée à créer.",
        "batch_weekend_skipped": "Ignoré: {date} (week-end)",
        "batch_generated": "{path} généré avec {count} jours manquants.",
        "batch_generate_hint": "Modifiez le fichier, puis exécutez: abacus time batch --file {path}",
        "dry_run_new": "+ nouveau",
        "dry_run_existing": "existant",
        "dry_run_summary": "{new} nouveau(x), {skipped} ignoré(s) (doublon), {existing} existant(s).",
        # Summary / check
        "summary_line1": "Sem. {week} · {worked} / {target}h · {remaining}h restant{missing}",
        "summary_missing": " · {days} manquant",
        "summary_line2": "Heures sup.: {overtime}h ({overtime_days}j) · Vacances: {vacation_days}j restant",
        "summary_updated_ago": "(mis à jour il y a {ago})",
        "check_warning": "Abacus: {days} non enregistré",
        "check_reminder": "Avez-vous enregistré vos heures cette semaine ? Vérifiez avec : abacus summary",
        "updating_cache": "Mise à jour du cache de statut...",
        "default_booking_text": "Développement",
    },
    "it": {
        "confirm_yes": "s",
        "update_yes": "a",
        "weekday_short": ["lun", "mar", "mer", "gio", "ven", "sab", "dom"],
        # Navigation & session
        "navigating_to_portal": "Navigazione verso il portale Abacus...",
        "captcha_detected": "Captcha FortiADC rilevato. Riapertura in modalità visibile...",
        "captcha_solve": "Risolvere il captcha nella finestra del browser.",
        "captcha_waiting": "In attesa del caricamento del portale...",
        "captcha_retry": "Captcha risolto. Nuovo tentativo...",
        "opening_time_tracking": "Apertura del menu di monitoraggio del tempo...",
        "opening_services": "Apertura delle Prestazioni...",
        "opening_weekly_report": "Apertura del rapporto settimanale...",
        "login_start": "Avvio del browser per l'accesso: {url}",
        "login_instructions": "Accedere nella finestra del browser. Si chiude quando l'accesso viene rilevato.",
        "login_detected": "Accesso rilevato.",
        "login_timeout": "Accesso non rilevato automaticamente. Se l'accesso è stato eseguito, premere Invio per salvare la sessione.",
        "session_saved": "Sessione salvata in {path}",
        "session_refreshed": "Sessione rinnovata con successo",
        "session_refresh_failed": "Sessione scaduta - eseguire 'abacus login'",
        "session_busy_skip": "Un'altra sessione è in corso, rinnovo saltato",
        # Filters
        "setting_view_month": "Impostazione vista su Mese...",
        "setting_view_week": "Impostazione vista su Settimana...",
        "setting_date": "Impostazione data a {date}...",
        # Grid
        "reading_entries": "Lettura delle voci...",
        "reading_existing_entries": "Lettura delle voci esistenti...",
        "no_entries_found": "Nessuna voce trovata.",
        "entries_total": "{count} voci totali.",
        "listing_entries": "Elenco voci per {month}...",
        # Status
        "reading_time_report": "Lettura del rapporto orario...",
        "time_report_not_found": "Rapporto orario non trovato.",
        "status_week_header": "Settimana {week:02d} · {start} – {end}",
        "status_worked": "Lavorato",
        "status_remaining": "Rimanente",
        "status_missing_days": "Giorni mancanti",
        "status_balances_header": "Saldi",
        "status_overtime": "Straordinario",
        "status_extra_time": "Tempo extra",
        "status_vacation_header": "Ferie",
        "status_vacation_remaining": "Saldo residuo",
        "status_vacation_planned": "Previsto al 31 dic",
        "hours_unit": "ore",
        "days_unit": "g",
        "hint_quick_actions": "Azioni rapide",
        "hint_log_single": "Registrare un singolo giorno:",
        "hint_batch_fill": "Registrare tutti i giorni mancanti:",
        "hint_batch_generate": "Generare modello & personalizzare per giorno:",
        # Table headers
        "header_date": "Data",
        "header_project": "Progetto",
        "header_service_type": "Tipo di prestazione",
        "header_hours": "Ore",
        "header_text": "Testo",
        "header_status": "Stato",
        # Form
        "setting_date_field": "Impostazione data: {date}",
        "setting_project": "Impostazione progetto: {project}",
        "setting_service_type": "Impostazione tipo di prestazione: {service_type}",
        "setting_hours": "Impostazione ore: {hours}",
        "setting_description": "Impostazione descrizione: {text}",
        "time_entry_label": "Voce oraria:",
        # Log
        "already_booked": "{hours} già prenotato il {date} per il progetto {project}",
        "service_type_label": "Tipo di prestazione",
        "text_label": "Testo",
        "prompt_update_or_new": "Aggiornare l'esistente o aggiungerne uno nuovo? [a/n] ",
        "opening_existing_entry": "Apertura della voce esistente...",
        "creating_new_entry": "Creazione di una nuova voce...",
        "no_existing_entry_creating": "Nessuna voce esistente, creazione...",
        "semi_manual_save": "Modulo compilato. Salvare nel browser, poi premere Invio qui.",
        # Save
        "saving": "Salvataggio...",
        "saved": "Salvato.",
        # Delete
        "no_entry_found": "Nessuna voce trovata il {date} per il progetto {project}.",
        "found_entry": "Trovato: {hours} il {date} — {project}",
        "prompt_confirm_delete": "Eliminare davvero? [s/n] ",
        "cancelled": "Annullato.",
        "multiple_entries_found": "{count} voci trovate il {date} per il progetto {project}:",
        "no_text": "(nessun testo)",
        "prompt_which_delete": "Quale eliminare? [1-{count} / a=tutti / n=annulla] ",
        "deleting_entry": "Eliminazione voce {current}/{total}...",
        "entry_deleted": "Voce eliminata.",
        "entries_deleted": "{count} voci eliminate.",
        "invalid_selection": "Selezione non valida. Annullato.",
        "deleting_entry_for": "Eliminazione voce per {date} / {project}...",
        "select_entries_to_delete": "Seleziona le voci da eliminare (numeri separati da virgole, a=tutti, vuoto=annulla):",
        "no_entries_selected": "Nessuna voce selezionata.",
        # List
        "missing_day_row": "Nessuna voce",
        "missing_days_summary": "{count} giorno/i lavorativo/i senza voci.",
        # Batch
        "batch_creating": "[{current}/{total}] Creazione voce per {date}...",
        "batch_skipping": "Ignorato: {date} — {project} (esiste già)",
        "batch_summary": "{created} voci create, {skipped} ignorate.",
        "batch_header": "Batch: {count} voci",
        "batch_dry_run": "Anteprima (dry-run):",
        "batch_no_entries": "Nessuna voce da creare.",
        "batch_weekend_skipped": "Ignorato: {date} (fine settimana)",
        "batch_generated": "{path} generato con {count} giorni mancanti.",
        "batch_generate_hint": "Modifica il file, poi esegui: abacus time batch --file {path}",
        "dry_run_new": "+ nuovo",
        "dry_run_existing": "esistente",
        "dry_run_summary": "{new} nuovi, {skipped} ignorati (duplicato), {existing} esistenti.",
        # Summary / check
        "summary_line1": "Sett. {week} · {worked} / {target}h · {remaining}h rimanenti{missing}",
        "summary_missing": " · {days} mancante",
        "summary_line2": "Straordinario: {overtime}h ({overtime_days}g) · Ferie: {vacation_days}g rimanenti",
        "summary_updated_ago": "(aggiornato {ago} fa)",
        "check_warning": "Abacus: {days} non registrato",
        "check_reminder": "Hai registrato le ore? Controlla con: abacus summary",
        "updating_cache": "Aggiornamento cache di stato...",
        "default_booking_text": "Sviluppo",
    },
    "es": {
        "confirm_yes": "s",
        "update_yes": "a",
        "weekday_short": ["lun", "mar", "mié", "jue", "vie", "sáb", "dom"],
        # Navigation & session
        "navigating_to_portal": "Navegando al portal Abacus...",
        "captcha_detected": "Captcha FortiADC detectado. Reabriendo en modo visible...",
        "captcha_solve": "Por favor, resuelva el captcha en la ventana del navegador.",
        "captcha_waiting": "Esperando a que cargue el portal...",
        "captcha_retry": "Captcha resuelto. Reintentando...",
        "opening_time_tracking": "Abriendo menú de seguimiento de tiempo...",
        "opening_services": "Abriendo Servicios...",
        "opening_weekly_report": "Abriendo informe semanal...",
        "login_start": "Iniciando navegador para el inicio de sesión: {url}",
        "login_instructions": "Inicie sesión en la ventana del navegador. Se cierra al detectar el inicio de sesión.",
        "login_detected": "Inicio de sesión detectado.",
        "login_timeout": "No se detectó el inicio de sesión. Si ya inició sesión, pulse Intro para guardar la sesión.",
        "session_saved": "Sesión guardada en {path}",
        "session_refreshed": "Sesión renovada correctamente",
        "session_refresh_failed": "Sesión expirada - ejecute 'abacus login'",
        "session_busy_skip": "Otra sesión está en curso, renovación omitida",
        # Filters
        "setting_view_month": "Configurando vista a Mes...",
        "setting_view_week": "Configurando vista a Semana...",
        "setting_date": "Configurando fecha a {date}...",
        # Grid
        "reading_entries": "Leyendo entradas...",
        "reading_existing_entries": "Leyendo entradas existentes...",
        "no_entries_found": "No se encontraron entradas.",
        "entries_total": "{count} entradas en total.",
        "listing_entries": "Listando entradas para {month}...",
        # Status
        "reading_time_report": "Leyendo informe horario...",
        "time_report_not_found": "Informe horario no encontrado.",
        "status_week_header": "Semana {week:02d} · {start} – {end}",
        "status_worked": "Trabajado",
        "status_remaining": "Restante",
        "status_missing_days": "Días sin registrar",
        "status_balances_header": "Saldos",
        "status_overtime": "Horas extra",
        "status_extra_time": "Tiempo extra",
        "status_vacation_header": "Vacaciones",
        "status_vacation_remaining": "Saldo restante",
        "status_vacation_planned": "Previsto al 31 dic",
        "hours_unit": "horas",
        "days_unit": "d",
        "hint_quick_actions": "Acciones rápidas",
        "hint_log_single": "Registrar un solo día:",
        "hint_batch_fill": "Registrar todos los días faltantes:",
        "hint_batch_generate": "Generar plantilla y personalizar por día:",
        # Table headers
        "header_date": "Fecha",
        "header_project": "Proyecto",
        "header_service_type": "Tipo de servicio",
        "header_hours": "Horas",
        "header_text": "Texto",
        "header_status": "Estado",
        # Form
        "setting_date_field": "Configurando fecha: {date}",
        "setting_project": "Configurando proyecto: {project}",
        "setting_service_type": "Configurando tipo de servicio: {service_type}",
        "setting_hours": "Configurando horas: {hours}",
        "setting_description": "Configurando descripción: {text}",
        "time_entry_label": "Entrada horaria:",
        # Log
        "already_booked": "{hours} ya reservado el {date} para el proyecto {project}",
        "service_type_label": "Tipo de servicio",
        "text_label": "Texto",
        "prompt_update_or_new": "¿Actualizar existente o añadir nuevo? [a/n] ",
        "opening_existing_entry": "Abriendo entrada existente...",
        "creating_new_entry": "Creando nueva entrada...",
        "no_existing_entry_creating": "No se encontró entrada existente, creando nueva...",
        "semi_manual_save": "Formulario completado. Guarde en el navegador y pulse Intro aquí.",
        # Save
        "saving": "Guardando...",
        "saved": "Guardado.",
        # Delete
        "no_entry_found": "No se encontró entrada el {date} para el proyecto {project}.",
        "found_entry": "Encontrado: {hours} el {date} — {project}",
        "prompt_confirm_delete": "¿Realmente eliminar? [s/n] ",
        "cancelled": "Cancelado.",
        "multiple_entries_found": "{count} entradas encontradas el {date} para el proyecto {project}:",
        "no_text": "(sin texto)",
        "prompt_which_delete": "¿Cuál eliminar? [1-{count} / a=todos / n=cancelar] ",
        "deleting_entry": "Eliminando entrada {current}/{total}...",
        "entry_deleted": "Entrada eliminada.",
        "entries_deleted": "{count} entradas eliminadas.",
        "invalid_selection": "Selección inválida. Cancelado.",
        "deleting_entry_for": "Eliminando entrada para {date} / {project}...",
        "select_entries_to_delete": "Selecciona las entradas a eliminar (números separados por comas, a=todos, vacío=cancelar):",
        "no_entries_selected": "Ninguna entrada seleccionada.",
        # List
        "missing_day_row": "Sin entradas",
        "missing_days_summary": "{count} día(s) laborable(s) sin entradas.",
        # Batch
        "batch_creating": "[{current}/{total}] Creando entrada para {date}...",
        "batch_skipping": "Omitido: {date} — {project} (ya existe)",
        "batch_summary": "{created} entradas creadas, {skipped} omitidas.",
        "batch_header": "Lote: {count} entradas",
        "batch_dry_run": "Vista previa (dry-run):",
        "batch_no_entries": "No hay entradas que crear.",
        "batch_weekend_skipped": "Omitido: {date} (fin de semana)",
        "batch_generated": "{path} generado con {count} días faltantes.",
        "batch_generate_hint": "Edite el archivo, luego ejecute: abacus time batch --file {path}",
        "dry_run_new": "+ nuevo",
        "dry_run_existing": "existente",
        "dry_run_summary": "{new} nuevo(s), {skipped} omitido(s) (duplicado), {existing} existente(s).",
        # Summary / check
        "summary_line1": "Sem. {week} · {worked} / {target}h · {remaining}h restante{missing}",
        "summary_missing": " · {days} faltante",
        "summary_line2": "Horas extra: {overtime}h ({overtime_days}d) · Vacaciones: {vacation_days}d restante",
        "summary_updated_ago": "(actualizado hace {ago})",
        "check_warning": "Abacus: {days} no registrado",
        "check_reminder": "¿Registraste tus horas esta semana? Verifica con: abacus summary",
        "updating_cache": "Actualizando caché de estado...",
        "default_booking_text": "Desarrollo",
    },
}

DEFAULT_LOCALE = "en"


def resolve_locale(file_value: str = "") -> tuple[str, str]:
    """Pick the locale: ABACUS_LOCALE env, config file, system LANG, fallback.

    Returns:
        (locale, source) where source is env, file, system or default.
    """
    env_value = os.environ.get("ABACUS_LOCALE", "")
    if env_value in LOCALE_STRINGS:
        return env_value, "env"
    if file_value in LOCALE_STRINGS:
        return file_value, "file"
    system = os.environ.get("LC_ALL") or os.environ.get("LANG") or ""
    short = system.replace("-", "_").split("_")[0].split(".")[0].lower()
    if short in LOCALE_STRINGS:
        return short, "system"
    return DEFAULT_LOCALE, "default"


class Locale:
    """Translation lookup for one language."""

    def __init__(self, code: str = DEFAULT_LOCALE):
        if code not in LOCALE_STRINGS:
            raise ValueError(f"Unsupported locale '{code}'")
        self.code = code
        self.strings = LOCALE_STRINGS[code]

    def __call__(self, key: str, **kwargs) -> str:
        return self.strings[key].format(**kwargs)

    @property
    def confirm_yes(self) -> str:
        return self.strings["confirm_yes"]

    @property
    def update_yes(self) -> str:
        return self.strings["update_yes"]

    def day_name(self, d: date) -> str:
        return self.strings["weekday_short"][d.weekday()]
